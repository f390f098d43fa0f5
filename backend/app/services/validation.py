"""Email syntax validation service."""

import re
from datetime import datetime, timezone
from typing import Any, Iterable
import logging

from ..models import (
    BatchResult,
    Checks,
    SyntaxCheck,
    ValidationMetadata,
    ValidationResponse,
    ValidationResult,
)

logger = logging.getLogger(__name__)

# local@domain.tld with no whitespace and no extra "@" in any part
EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")

VALID_QUALITY_SCORE = 0.8
INVALID_QUALITY_SCORE = 0.0

# Placeholder latencies, not measured
SINGLE_PROCESSING_TIME_MS = 10
BATCH_PROCESSING_TIME_MS = 50

SIMPLIFIED_NOTE = "Simplified validation - full features coming soon!"


def is_valid_syntax(email: Any) -> bool:
    """Return True if ``email`` is a string matching the basic address pattern."""
    if not isinstance(email, str):
        return False
    return EMAIL_PATTERN.fullmatch(email) is not None


def quality_score(valid: bool) -> float:
    """Constant stand-in for a real scoring model."""
    return VALID_QUALITY_SCORE if valid else INVALID_QUALITY_SCORE


class EmailValidator:
    """Applies the syntax check to one or many addresses."""

    def check(self, email: Any) -> ValidationResult:
        """
        Validate a single address.

        The pattern is evaluated once and every derived field is taken from
        that single result.
        """
        valid = is_valid_syntax(email)
        return ValidationResult(
            email=email,
            valid=valid,
            quality_score=quality_score(valid),
            checks=Checks(syntax=SyntaxCheck(valid=valid)),
        )

    def validate(self, email: Any) -> ValidationResponse:
        """Validate a single address and attach response metadata."""
        result = self.check(email)
        return ValidationResponse(
            **result.model_dump(),
            metadata=ValidationMetadata(
                processing_time_ms=SINGLE_PROCESSING_TIME_MS,
                timestamp=datetime.now(timezone.utc).isoformat(),
            ),
            note=SIMPLIFIED_NOTE,
        )

    def validate_batch(self, emails: Iterable[Any]) -> BatchResult:
        """
        Validate each address independently, preserving input order.

        Entries that are not strings are reported as invalid rather than
        rejecting the batch.
        """
        results = [self.check(email) for email in emails]
        valid_count = sum(1 for r in results if r.valid)
        logger.debug(f"Batch validated: {valid_count}/{len(results)} valid")
        return BatchResult(
            results=results,
            total=len(results),
            valid_count=valid_count,
            processing_time_ms=BATCH_PROCESSING_TIME_MS,
        )
