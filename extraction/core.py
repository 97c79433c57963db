import logging
from typing import Optional

from .client import execute
from .config import get_extraction_mode
from .exceptions import AnalysisError
from .models import ScrapedData
from .normalizer import normalize
from .prompt import build_request
from .schema import ExtractionMode, build_schema

logger = logging.getLogger(__name__)


async def analyze(
    url: str,
    image_url: Optional[str] = None,
    mode: Optional[ExtractionMode] = None,
) -> ScrapedData:
    """
    Top-level entry point. Builds the request, makes the single model call,
    and normalizes the reply into a ScrapedData record.

    Raises an AnalysisError subclass on any failure; nothing partial is returned.
    """
    mode = mode or get_extraction_mode()

    # rejects an empty URL before any network traffic
    request = build_request(url, image_url, mode=mode)
    schema = build_schema(mode)

    try:
        raw_text = await execute(request, schema)
        result = normalize(raw_text, mode=mode)
    except AnalysisError as exc:
        logger.error("Analysis failed for %s: [%s] %s", url, exc.error_code, exc.message)
        raise

    logger.info("Analyzed %s as %s", url, result.page_type.value)
    return result
