from .core import analyze
from .exceptions import AnalysisError
from .models import ScrapedData
from .normalizer import normalize
from .prompt import build_request
from .schema import ExtractionMode, build_schema
from .session import AnalysisSession

__all__ = [
    "analyze",
    "AnalysisError",
    "AnalysisSession",
    "ExtractionMode",
    "ScrapedData",
    "build_request",
    "build_schema",
    "normalize",
]
