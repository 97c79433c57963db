import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from extraction import config
from extraction.exceptions import AnalysisError
from .middleware import AccessLogMiddleware, AnalyzeRateLimitMiddleware
from .routes import router

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Page Fact Extractor",
    description=(
        "Given any URL, asks a grounded generative model for the page's type, metadata, core entity "
        "and product or content details, and returns them as a validated structured record."
    ),
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# middleware stack: outermost runs first on request, last on response
app.add_middleware(AnalyzeRateLimitMiddleware)
app.add_middleware(AccessLogMiddleware)

# a missing key only breaks analyze calls, so the process still starts
if config.has_api_key():
    logger.info("Gemini API key is configured")
else:
    logger.warning("No Gemini API key set (%s); analysis requests will fail", " / ".join(config.API_KEY_VARIABLES))


@app.exception_handler(AnalysisError)
async def analysis_exception_handler(request: Request, exc: AnalysisError):
    logger.error("Analysis error on %s: [%s] %s", request.url.path, exc.error_code, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"error": "Request body must be a JSON object with a 'url' field."})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error("Unhandled error: %s", exc, exc_info=True)
    return JSONResponse(status_code=500, content={"error": "An unexpected error occurred."})


app.include_router(router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("api.main:app", host="0.0.0.0", port=config.PORT)
