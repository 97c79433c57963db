import logging
import re
from enum import Enum
from typing import Annotated, Any, Literal, Optional

from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)

_DIGIT_RE = re.compile(r"\d")

# specification names that belong next to the facts label rather than in the general list
_LABEL_SPEC_HINTS = ("serving", "container")


class PageType(str, Enum):
    PRODUCT = "product"
    SERVICE = "service"
    CONTENT = "content"
    UNKNOWN = "unknown"


def _number_to_str(value: Any) -> Any:
    # models occasionally emit prices and amounts as bare numbers
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


def _not_blank(value: str) -> str:
    if not value.strip():
        raise ValueError("required value is missing")
    return value


def _clean_number(value: Any) -> Any:
    if isinstance(value, bool):
        raise ValueError("expected a number, got bool")
    if isinstance(value, str):
        cleaned = value.replace(",", "").strip()
        return cleaned or None
    return value


def _none_to_list(value: Any) -> Any:
    return [] if value is None else value


Text = Annotated[Optional[str], BeforeValidator(_number_to_str)]
RequiredText = Annotated[str, BeforeValidator(_number_to_str), AfterValidator(_not_blank)]
Number = Annotated[Optional[float], BeforeValidator(_clean_number)]
Count = Annotated[Optional[int], BeforeValidator(_clean_number)]


class Record(BaseModel):
    """camelCase on the wire, snake_case in Python; unknown keys from the model are ignored."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- shared sub-records ---

class Metadata(Record):
    title: Text = None
    meta_description: Text = None
    canonical_url: Text = None
    language: Text = None


class CoreEntity(Record):
    name: Text = None
    brand: Text = None
    category: Text = None
    image: Text = None          # main entity image URL


# --- single-entity product details ---

class Price(Record):
    amount: Text = None         # kept as printed, e.g. "1,299.00"
    currency: Text = None


class Specification(Record):
    name: RequiredText
    value: Annotated[str, BeforeValidator(lambda v: "" if v is None else _number_to_str(v))] = ""


class NutritionalComponent(Record):
    element: RequiredText
    amount: RequiredText
    daily_value: Text = None

    @model_validator(mode="after")
    def _report_amount_without_digit(self) -> "NutritionalComponent":
        # extraction rule, not a structural one: report it but keep the row where the model put it
        if not _DIGIT_RE.search(self.amount):
            logger.warning("Nutritional row %r has no numeric amount: %r", self.element, self.amount)
        return self


class ProductDetails(Record):
    price: Optional[Price] = None
    specifications: Annotated[list[Specification], BeforeValidator(_none_to_list)] = Field(default_factory=list)
    nutritional_information: Annotated[list[NutritionalComponent], BeforeValidator(_none_to_list)] = Field(
        default_factory=list
    )
    description: Text = None
    suggested_use: Text = None
    ingredients: Text = None    # comma-joined, items without a numeric amount only
    warnings: Text = None
    disclaimer: Text = None
    label_image: Text = None    # URL of the supplement facts label

    @field_validator("specifications", mode="before")
    @classmethod
    def _drop_nameless_specifications(cls, value: Any) -> Any:
        if not isinstance(value, list):
            return value
        kept = []
        for row in value:
            if isinstance(row, dict):
                name = _number_to_str(row.get("name"))
                if not isinstance(name, str) or not name.strip():
                    logger.warning("Dropping specification row without a name: %r", row)
                    continue
            kept.append(row)
        return kept

    def label_specifications(self) -> list[Specification]:
        """Specifications shown on the facts label itself (serving size, servings per container)."""
        return [s for s in self.specifications if any(h in s.name.lower() for h in _LABEL_SPEC_HINTS)]

    def general_specifications(self) -> list[Specification]:
        label = self.label_specifications()
        return [s for s in self.specifications if s not in label]

    def ingredient_list(self) -> list[str]:
        if not self.ingredients:
            return []
        return [item.strip() for item in self.ingredients.split(",") if item.strip()]


class ContentDetails(Record):
    author: Text = None
    publish_date: Text = None
    main_content: Text = None
    headings: Annotated[list[str], BeforeValidator(_none_to_list)] = Field(default_factory=list)

    @field_validator("headings", mode="after")
    @classmethod
    def _drop_empty_headings(cls, value: list[str]) -> list[str]:
        return [h for h in value if h]


# --- multi-entity product records ---

class ProductPrice(Record):
    amount: Number = None
    currency: Text = None
    original_amount: Number = None
    discount_percent: Number = None


class Rating(Record):
    average: Number = None
    count: Count = None


class IngredientAmount(Record):
    name: RequiredText
    amount: Number = None
    unit: Text = None


class Recommendation(Record):
    reason: Text = None
    priority: Optional[Literal["high", "medium", "low"]] = None

    @field_validator("priority", mode="before")
    @classmethod
    def _fold_priority(cls, value: Any) -> Any:
        return value.strip().lower() if isinstance(value, str) else value


class ProductRecord(Record):
    name: RequiredText
    brand: Text = None
    url: Text = None
    price: Optional[ProductPrice] = None
    rating: Optional[Rating] = None
    ingredients: Annotated[list[IngredientAmount], BeforeValidator(_none_to_list)] = Field(default_factory=list)
    recommendation: Optional[Recommendation] = None
    trusted: Annotated[bool, BeforeValidator(lambda v: False if v is None else v)] = False


# --- root record ---

class ScrapedData(Record):
    """
    Validated extraction result.

    Built from the parsed model reply by ``normalizer.validate_payload``; the
    rules here are independent of the schema dict sent to the model, so a
    reply that slipped past the remote enforcement still has to pass them.
    """

    page_type: PageType
    metadata: Metadata = Field(default_factory=Metadata)
    core_entity: CoreEntity = Field(default_factory=CoreEntity)

    # at most one of these is expected, but both may be absent or present
    product_details: Optional[ProductDetails] = None
    content_details: Optional[ContentDetails] = None

    # populated in multi-entity mode only
    products: Optional[list[ProductRecord]] = None

    @field_validator("page_type", mode="before")
    @classmethod
    def _fold_page_type(cls, value: Any) -> Any:
        return value.strip().lower() if isinstance(value, str) else value

    def to_dict(self) -> dict:
        """Wire form: null optional leaves are kept, absent detail records are left out."""
        data = self.model_dump(mode="json", by_alias=True)
        for key in ("productDetails", "contentDetails", "products"):
            if data.get(key) is None:
                data.pop(key, None)
        return data
