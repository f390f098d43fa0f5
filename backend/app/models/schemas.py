"""Pydantic schemas for API requests and responses."""

from pydantic import BaseModel, Field
from typing import Any, Optional


class ValidationRequest(BaseModel):
    """Request body for single email validation.

    ``email`` is left untyped: a falsy value is reported as missing and any
    other non-string value is validated and reported invalid.
    """
    email: Any = Field(None, description="Email address to validate")

    class Config:
        json_schema_extra = {
            "example": {"email": "jane.doe@example.com"}
        }


class BatchValidationRequest(BaseModel):
    """Request body for batch validation.

    ``emails`` is left untyped so that a non-array value is reported as a
    VALIDATION_ERROR by the route instead of a framework error.
    """
    emails: Any = Field(None, description="Email addresses to validate, in order")

    class Config:
        json_schema_extra = {
            "example": {"emails": ["jane.doe@example.com", "not-an-email"]}
        }


class SyntaxCheck(BaseModel):
    """Outcome of the syntax check."""
    valid: bool


class Checks(BaseModel):
    """Individual checks applied to an address."""
    syntax: SyntaxCheck


class ValidationResult(BaseModel):
    """Validation result for a single address."""
    email: Any
    valid: bool
    quality_score: float = Field(ge=0.0, le=1.0)
    checks: Checks

    class Config:
        json_schema_extra = {
            "example": {
                "email": "jane.doe@example.com",
                "valid": True,
                "quality_score": 0.8,
                "checks": {"syntax": {"valid": True}}
            }
        }


class ValidationMetadata(BaseModel):
    """Processing metadata attached to a single validation."""
    processing_time_ms: int
    timestamp: str


class ValidationResponse(ValidationResult):
    """Response for single email validation."""
    metadata: ValidationMetadata
    note: str


class BatchResult(BaseModel):
    """Response for batch validation."""
    results: list[ValidationResult]
    total: int
    valid_count: int
    processing_time_ms: int


class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str
    message: str
    path: Optional[str] = None
    stack: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "error": "VALIDATION_ERROR",
                "message": "Email is required"
            }
        }


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    timestamp: str
    uptime: float
    version: str
    message: str


class ReadinessResponse(BaseModel):
    """Readiness probe response."""
    ready: bool


class LivenessResponse(BaseModel):
    """Liveness probe response."""
    alive: bool


class ServiceInfo(BaseModel):
    """Service descriptor returned from the root endpoint."""
    name: str
    version: str
    status: str
    documentation: str
    endpoints: dict[str, str]
