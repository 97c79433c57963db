import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from extraction import config
from extraction.core import analyze
from extraction.exceptions import InvalidInput
from .cache import cache_key, get_cached, set_cached, is_cache_healthy
from .schemas import AnalyzeRequest, DiagnosticEnv, DiagnosticResponse, ErrorResponse, HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/api/analyze",
    summary="Extract structured product/content data from a URL",
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def analyze_url(request: AnalyzeRequest) -> JSONResponse:
    """
    Returns the ScrapedData record for the page at `url`.

    - `imageUrl` optionally attaches a product/label image for the model to read.
    - Successful results are cached in Redis; failures never are.
    - The `X-Cache` header says whether the result came from the cache.
    """
    url = (request.url or "").strip()
    logger.info("Received analysis request for URL: %s", url)
    if not url:
        raise InvalidInput("URL is required")

    image_url = (request.imageUrl or "").strip() or None
    mode = config.get_extraction_mode()
    key = cache_key(mode.value, url, image_url)

    cached = get_cached(key)
    if cached:
        logger.info("Cache hit for %s", url)
        return JSONResponse(content=cached, headers={"X-Cache": "hit"})

    # AnalysisError propagates to the handler registered in main.py
    result = await analyze(url, image_url, mode=mode)
    data = result.to_dict()
    set_cached(key, data)

    return JSONResponse(content=data, headers={"X-Cache": "miss"})


@router.get("/health", response_model=HealthResponse, summary="Service health check")
async def health_check() -> HealthResponse:
    cache_status = "connected" if is_cache_healthy() else "unavailable"
    return HealthResponse(status="ok", cache=cache_status)


@router.get("/api/test", response_model=DiagnosticResponse, summary="Configuration diagnostics")
async def diagnostics() -> DiagnosticResponse:
    # reports whether a key is set, never the key itself
    return DiagnosticResponse(
        status="ok",
        env=DiagnosticEnv(
            hasApiKey=config.has_api_key(),
            port=config.PORT,
            model=config.GEMINI_MODEL,
            extractionMode=config.get_extraction_mode().value,
        ),
    )
