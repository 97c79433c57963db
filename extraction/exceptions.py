from http import HTTPStatus
from typing import Any, Dict, Optional


class AnalysisError(Exception):
    """Base class for every failure an analysis can surface to its caller."""

    def __init__(
        self,
        message: str,
        error_code: str = "ANALYSIS_ERROR",
        status_code: int = HTTPStatus.INTERNAL_SERVER_ERROR,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message}


class InvalidInput(AnalysisError):
    """Raised before any model call when the caller's input is unusable."""

    def __init__(self, reason: str):
        super().__init__(
            message=reason,
            error_code="INVALID_INPUT",
            status_code=HTTPStatus.BAD_REQUEST,
        )


class MissingCredential(AnalysisError):
    """Raised when no API key is configured for the generation service."""

    def __init__(self, variable: str):
        super().__init__(
            message=f"API key not found in environment variables ({variable}).",
            error_code="MISSING_CREDENTIAL",
            details={"variable": variable},
        )


class ExtractionFailed(AnalysisError):
    """Raised when the model call errors out or returns no text."""

    def __init__(self, reason: str):
        super().__init__(
            message=f"Extraction failed: {reason}",
            error_code="EXTRACTION_FAILED",
            details={"reason": reason},
        )


class EmptyResponse(AnalysisError):
    def __init__(self):
        super().__init__(
            message="The model returned an empty response.",
            error_code="EMPTY_RESPONSE",
        )


class MalformedPayload(AnalysisError):
    """Raised when no JSON object can be recovered from the model reply."""

    def __init__(self, reason: str):
        super().__init__(
            message=f"Could not parse model response: {reason}",
            error_code="MALFORMED_PAYLOAD",
            details={"reason": reason},
        )


class SchemaViolation(AnalysisError):
    """Raised when parsed JSON does not have the shape of a ScrapedData record."""

    def __init__(self, field: str, reason: str):
        super().__init__(
            message=f"Response failed validation at '{field}': {reason}",
            error_code="SCHEMA_VIOLATION",
            details={"field": field, "reason": reason},
        )
