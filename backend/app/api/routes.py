"""API route definitions."""

from fastapi import APIRouter
from typing import Optional
import logging

from ..errors import RequestValidationFailed
from ..models import (
    ValidationRequest,
    ValidationResponse,
    BatchValidationRequest,
    BatchResult,
    ErrorResponse,
)
from ..services import EmailValidator

logger = logging.getLogger(__name__)
router = APIRouter()

validator = EmailValidator()


@router.post(
    "/validate",
    response_model=ValidationResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Email missing"},
    },
    tags=["Validation"]
)
async def validate_email(payload: Optional[ValidationRequest] = None):
    """
    Validate a single email address.

    Only the address syntax is checked; the quality score is a fixed value
    derived from the syntax result.
    """
    if payload is None or not payload.email:
        raise RequestValidationFailed("Email is required")

    return validator.validate(payload.email)


@router.post(
    "/batch",
    response_model=BatchResult,
    responses={
        400: {"model": ErrorResponse, "description": "Emails array missing"},
    },
    tags=["Validation"]
)
async def validate_batch(payload: Optional[BatchValidationRequest] = None):
    """
    Validate multiple email addresses.

    Results are returned in input order. Invalid entries are reported per
    item and never fail the batch.
    """
    if payload is None or not isinstance(payload.emails, list):
        raise RequestValidationFailed("Emails array is required")

    return validator.validate_batch(payload.emails)
