"""Pydantic models for request/response schemas."""

from .schemas import (
    ValidationRequest,
    BatchValidationRequest,
    SyntaxCheck,
    Checks,
    ValidationResult,
    ValidationMetadata,
    ValidationResponse,
    BatchResult,
    ErrorResponse,
    HealthResponse,
    ReadinessResponse,
    LivenessResponse,
    ServiceInfo,
)

__all__ = [
    "ValidationRequest",
    "BatchValidationRequest",
    "SyntaxCheck",
    "Checks",
    "ValidationResult",
    "ValidationMetadata",
    "ValidationResponse",
    "BatchResult",
    "ErrorResponse",
    "HealthResponse",
    "ReadinessResponse",
    "LivenessResponse",
    "ServiceInfo",
]
