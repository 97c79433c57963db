from typing import Optional

from pydantic import BaseModel


class AnalyzeRequest(BaseModel):
    # both optional at the model level so a missing url is answered with 400, not 422
    url: Optional[str] = None
    imageUrl: Optional[str] = None


class HealthResponse(BaseModel):
    status: str
    cache: str  # "connected" or "unavailable"


class DiagnosticEnv(BaseModel):
    hasApiKey: bool
    port: int
    model: str
    extractionMode: str


class DiagnosticResponse(BaseModel):
    status: str
    env: DiagnosticEnv


class ErrorResponse(BaseModel):
    error: str
