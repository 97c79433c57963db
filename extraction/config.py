import logging
import os
from typing import Optional

from .schema import ExtractionMode

logger = logging.getLogger(__name__)

# checked in order; the first non-empty one wins
API_KEY_VARIABLES = ("GEMINI_API_KEY", "API_KEY")

DEFAULT_MODEL = "gemini-3-flash-preview"
GEMINI_MODEL = os.getenv("GEMINI_MODEL", DEFAULT_MODEL)

PORT = int(os.getenv("PORT", "8080"))

# seconds between cosmetic progress notices while a call is in flight
PROGRESS_INTERVAL = float(os.getenv("PROGRESS_INTERVAL_SECONDS", "1.5"))


def get_api_key() -> Optional[str]:
    """Resolve the credential from the environment at call time, never at import."""
    for name in API_KEY_VARIABLES:
        value = os.getenv(name)
        if value:
            return value
    return None


def has_api_key() -> bool:
    return get_api_key() is not None


def get_extraction_mode() -> ExtractionMode:
    raw = os.getenv("EXTRACTION_MODE", ExtractionMode.SINGLE.value).strip().lower()
    try:
        return ExtractionMode(raw)
    except ValueError:
        logger.warning("Unknown EXTRACTION_MODE %r, falling back to %s", raw, ExtractionMode.SINGLE.value)
        return ExtractionMode.SINGLE
