"""
Response schema handed to the generation service.

The schema doubles as a channel for business rules the type system cannot
express ("must contain a digit", "no parenthetical notes"): those live in the
per-field ``description`` strings, which the model reads as guidance.

Nothing in here is used to validate replies locally; see ``models.py``.
"""

from enum import Enum


class ExtractionMode(str, Enum):
    SINGLE = "single"   # one product/content record per page
    MULTI = "multi"     # plus a ``products`` array for listing/comparison pages


PAGE_TYPES = ("product", "service", "content", "unknown")

REQUIRED_FIELDS = ("pageType", "metadata", "coreEntity")


def _string(description: str = None, nullable: bool = True) -> dict:
    field = {"type": "STRING"}
    if nullable:
        field["nullable"] = True
    if description:
        field["description"] = description
    return field


def _number(description: str = None) -> dict:
    field = {"type": "NUMBER", "nullable": True}
    if description:
        field["description"] = description
    return field


def _metadata_schema() -> dict:
    return {
        "type": "OBJECT",
        "properties": {
            "title": _string(),
            "metaDescription": _string(),
            "canonicalUrl": _string(),
            "language": _string(),
        },
    }


def _core_entity_schema() -> dict:
    return {
        "type": "OBJECT",
        "properties": {
            "name": _string(),
            "brand": _string(),
            "category": _string(),
            "image": _string("Direct URL of the main entity image."),
        },
    }


def _nutritional_schema() -> dict:
    return {
        "type": "ARRAY",
        "description": (
            "An exhaustive list of EVERY nutrient, herb, oil, or ingredient that has an associated "
            "numeric amount (e.g., weight, volume, calories, or percentage). Extract from ALL tables "
            "including 'Supplement Facts', 'Nutritional Information', and 'Approx Value'."
        ),
        "items": {
            "type": "OBJECT",
            "properties": {
                "element": _string(
                    "The name of the nutrient or ingredient ONLY (e.g. 'Vitamin C', 'DHA'). DO NOT include "
                    "descriptions, parenthetical notes, or source information.",
                    nullable=False,
                ),
                "amount": _string(
                    "The numeric amount and unit (e.g. '500 mg', '10 g', '73.6 Kcal'). Must contain a digit.",
                    nullable=False,
                ),
                "dailyValue": _string("The % Daily Value (e.g. '50%', '100%')."),
            },
            "required": ["element", "amount"],
        },
    }


def _product_details_schema() -> dict:
    return {
        "type": "OBJECT",
        "nullable": True,
        "properties": {
            "price": {
                "type": "OBJECT",
                "nullable": True,
                "properties": {
                    "amount": _string("The exact price as printed, without the currency symbol."),
                    "currency": _string("Currency symbol or code, e.g. '$', 'INR', 'USD'."),
                },
            },
            "description": _string(),
            "specifications": {
                "type": "ARRAY",
                "items": {
                    "type": "OBJECT",
                    "properties": {
                        "name": _string(nullable=False),
                        "value": _string(nullable=False),
                    },
                    "required": ["name", "value"],
                },
            },
            "nutritionalInformation": _nutritional_schema(),
            "suggestedUse": _string(),
            "ingredients": _string(
                "A comma-separated list of ingredients that DO NOT have associated numeric amounts. If an "
                "item has a weight/value next to it, it MUST be in nutritionalInformation instead."
            ),
            "warnings": _string(),
            "disclaimer": _string(),
            "labelImage": _string("Direct URL of the Supplement Facts or Nutritional Information label image."),
        },
    }


def _content_details_schema() -> dict:
    return {
        "type": "OBJECT",
        "nullable": True,
        "properties": {
            "author": _string(),
            "publishDate": _string(),
            "mainContent": _string(),
            "headings": {"type": "ARRAY", "items": {"type": "STRING"}},
        },
    }


def _product_record_schema() -> dict:
    return {
        "type": "OBJECT",
        "properties": {
            "name": _string(nullable=False),
            "brand": _string(),
            "url": _string("Direct link to this product's own page, if listed."),
            "price": {
                "type": "OBJECT",
                "nullable": True,
                "properties": {
                    "amount": _number("Current selling price as a plain number, no currency symbol."),
                    "currency": _string(),
                    "originalAmount": _number("Price before any discount, if shown."),
                    "discountPercent": _number("Discount as a percentage number, e.g. 15 for 15% off."),
                },
            },
            "rating": {
                "type": "OBJECT",
                "nullable": True,
                "properties": {
                    "average": _number("Average star rating, e.g. 4.5."),
                    "count": {"type": "INTEGER", "nullable": True, "description": "Number of ratings or reviews."},
                },
            },
            "ingredients": {
                "type": "ARRAY",
                "items": {
                    "type": "OBJECT",
                    "properties": {
                        "name": _string(nullable=False),
                        "amount": _number("Numeric quantity only, e.g. 500."),
                        "unit": _string("Unit of the amount, e.g. 'mg', 'g', 'IU', 'Kcal'."),
                    },
                    "required": ["name"],
                },
            },
            "recommendation": {
                "type": "OBJECT",
                "nullable": True,
                "properties": {
                    "reason": _string("One sentence on who this product suits, grounded in the extracted facts."),
                    "priority": {"type": "STRING", "nullable": True, "enum": ["high", "medium", "low"]},
                },
            },
            "trusted": {
                "type": "BOOLEAN",
                "description": "True only when the facts were confirmed against the brand's own page or label.",
            },
        },
        "required": ["name"],
    }


def required_fields(mode: ExtractionMode = ExtractionMode.SINGLE) -> tuple:
    if mode is ExtractionMode.MULTI:
        return REQUIRED_FIELDS + ("products",)
    return REQUIRED_FIELDS


def build_schema(mode: ExtractionMode = ExtractionMode.SINGLE) -> dict:
    """Build the response schema for the given extraction mode."""
    properties = {
        "pageType": {"type": "STRING", "enum": list(PAGE_TYPES)},
        "metadata": _metadata_schema(),
        "coreEntity": _core_entity_schema(),
        "productDetails": _product_details_schema(),
        "contentDetails": _content_details_schema(),
    }
    if mode is ExtractionMode.MULTI:
        properties["products"] = {
            "type": "ARRAY",
            "description": "One entry per distinct product offered on the page, in page order.",
            "items": _product_record_schema(),
        }

    return {
        "type": "OBJECT",
        "properties": properties,
        "required": list(required_fields(mode)),
    }
