from dataclasses import dataclass, field
from typing import Optional, Union
from urllib.parse import urlparse

from .exceptions import InvalidInput
from .schema import ExtractionMode

# extension -> MIME type for image attachments; anything else is sent as JPEG
_IMAGE_MIME_TYPES = {
    ".png": "image/png",
    ".webp": "image/webp",
}
DEFAULT_IMAGE_MIME_TYPE = "image/jpeg"

SYSTEM_INSTRUCTION = """\
You are an expert Data Extraction AI.
Your goal is to extract structured information from web pages, with a high focus on "Supplement Facts" and "Nutritional Information" labels.

CRITICAL RULES:
1. PRICE: Extract the EXACT numeric price into 'amount' and the currency symbol or code (e.g., "$", "INR", "USD") into 'currency'. Look for discounted prices.
2. NUTRIENTS: Extract ALL items from ANY tables or lists that have numeric weights, amounts, or calories (e.g., "73.6 Kcal", "500 mg", "10 g", "0.40 g"). If an item has a numeric value associated with it, it MUST go into 'nutritionalInformation', NOT 'ingredients'.
3. MANDATORY FIELDS: Every entry in 'nutritionalInformation' MUST have both 'element' and 'amount'. If an amount is missing, move the item to 'ingredients'.
4. CONCISENESS: The 'element' name must be just the substance name (e.g., "DHA"). DO NOT include descriptions, parenthetical details, source notes, or headers like "Amount Per Serving".
5. TABLE SOURCES: Treat 'Approx Value', 'Supplement Facts', 'Nutritional Information', and 'Composition' as sources for nutritionalInformation.
6. SEARCH FOR IMAGES: Use your Google Search tool to specifically look for the direct URL of the "Supplement Facts" or "Nutritional Information" label image for this specific product.
7. DATA FROM SEARCH: Use Google Search to find any nutritional data or ingredient lists that are missing or hard to read on the provided page (especially if they are in images).
8. ZERO SUMMARIZATION: Every single row in a table or list must be its own object in the array. Do not group multiple nutrients into one string.
9. NO MARKETING: Ignore marketing counts (e.g., "16 science-driven ingredients") in the nutritionalInformation section.
10. SUB-ITEMS & BLENDS: Include ALL items, including indented sub-items and members of a "Proprietary Formulation" or blend, especially if they have weights/amounts.
11. INGREDIENTS: Use the 'ingredients' field ONLY for items that DO NOT have an associated weight, amount, or numeric value. Format as a comma-separated list.
12. VALIDATION: Output ONLY pure JSON matching the provided schema.
"""

MULTI_PRODUCT_RULES = """
MULTI-PRODUCT PAGES:
13. PRODUCTS: Add one entry to 'products' for EVERY distinct product on the page (listings, bundles, comparisons). Keep 'coreEntity' for the page's primary subject.
14. NUMBERS: In 'products', prices, ratings and ingredient amounts are plain numbers; put units in 'unit' and currency in 'currency'.
15. RECOMMENDATION: Give each product a one-sentence 'reason' and a 'priority' of high, medium or low, based only on extracted facts.
16. TRUST: Set 'trusted' to true only when the facts were confirmed on the brand's own page or label.
"""

TASK_PROMPT = """\
Analyze the product at this URL: {url}.

1. GROUNDING: Use Google Search to find the product's official nutritional information and ingredients if the provided URL is missing information or presents it only in images.
2. IMAGE ADDRESS: Specifically look for the direct image address (URL) of the Supplement Facts or Nutritional Information chart. If found, include it in the 'labelImage' field.
3. PRICE: Identify the current price and currency.
4. AUDIT: Perform a row-by-row extraction of EVERY substance with a numeric value found in text, images (via OCR/Search), or grounding results.
5. CLEANING: Ensure 'element' names are short substance names only.
6. RULES: Do NOT summarize. Every item with a value MUST be in 'nutritionalInformation'.

Return the results strictly following the JSON schema."""

IMAGE_HINT = "\nThe attached image shows this product; read any label or facts panel visible in it."


@dataclass(frozen=True)
class TextPart:
    text: str


@dataclass(frozen=True)
class FileReferencePart:
    file_uri: str
    mime_type: str


Part = Union[TextPart, FileReferencePart]


@dataclass
class ExtractionRequest:
    system_instruction: str
    parts: list[Part] = field(default_factory=list)
    enable_search: bool = True          # grounding via the model's Google Search tool


def infer_mime_type(image_url: str) -> str:
    """Pick an image MIME type from the URL path's extension, ignoring query strings."""
    path = urlparse(image_url).path.lower()
    for extension, mime_type in _IMAGE_MIME_TYPES.items():
        if path.endswith(extension):
            return mime_type
    return DEFAULT_IMAGE_MIME_TYPE


def build_system_instruction(mode: ExtractionMode = ExtractionMode.SINGLE) -> str:
    if mode is ExtractionMode.MULTI:
        return SYSTEM_INSTRUCTION + MULTI_PRODUCT_RULES
    return SYSTEM_INSTRUCTION


def build_request(
    url: str,
    image_url: Optional[str] = None,
    mode: ExtractionMode = ExtractionMode.SINGLE,
) -> ExtractionRequest:
    """
    Assemble the multimodal request for one analysis.

    Pure construction: nothing is fetched here. The model resolves both the
    page URL (through grounding search) and the image reference on its side.
    """
    if not url or not url.strip():
        raise InvalidInput("URL is required")

    url = url.strip()
    image_url = image_url.strip() if image_url else None

    prompt = TASK_PROMPT.format(url=url)
    if image_url:
        prompt += IMAGE_HINT

    parts: list[Part] = [TextPart(text=prompt)]
    if image_url:
        parts.append(FileReferencePart(file_uri=image_url, mime_type=infer_mime_type(image_url)))

    return ExtractionRequest(system_instruction=build_system_instruction(mode), parts=parts)
