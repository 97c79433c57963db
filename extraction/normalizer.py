import json
import logging
import re
from typing import Any

from pydantic import ValidationError

from .exceptions import EmptyResponse, MalformedPayload, SchemaViolation
from .models import ScrapedData
from .schema import ExtractionMode, required_fields

logger = logging.getLogger(__name__)

# matches ```json, ```JSON and bare ``` fences wherever they appear
_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)


def clean_payload(raw_text: str) -> str:
    """
    Reduce a model reply to the JSON object it contains.

    Strips code fences, then keeps everything from the first '{' to the last
    '}' so that prose before or after the object is dropped.
    """
    if raw_text is None or not raw_text.strip():
        raise EmptyResponse()

    text = _FENCE_RE.sub("", raw_text)
    first = text.find("{")
    last = text.rfind("}")
    if first == -1 or last == -1 or last < first:
        raise MalformedPayload("no JSON object found in response")
    return text[first:last + 1]


def _format_loc(loc: tuple) -> str:
    path = ""
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path += f".{part}" if path else str(part)
    return path or "$"


def validate_payload(data: Any, mode: ExtractionMode = ExtractionMode.SINGLE) -> ScrapedData:
    """Check parsed JSON against the ScrapedData model and the mode's required fields."""
    if not isinstance(data, dict):
        raise SchemaViolation("$", f"expected an object, got {type(data).__name__}")

    for name in required_fields(mode):
        if data.get(name) is None:
            raise SchemaViolation(name, "required field is missing")

    try:
        return ScrapedData.model_validate(data)
    except ValidationError as exc:
        first = exc.errors()[0]
        raise SchemaViolation(_format_loc(first["loc"]), first["msg"]) from exc


def normalize(raw_text: str, mode: ExtractionMode = ExtractionMode.SINGLE) -> ScrapedData:
    """Turn a raw model reply into a validated ScrapedData record."""
    payload = clean_payload(raw_text)
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as exc:
        logger.warning("Model reply is not valid JSON: %s", exc)
        raise MalformedPayload(str(exc)) from exc

    return validate_payload(data, mode=mode)
