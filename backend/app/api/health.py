"""Health check routes. No dependency checks are performed."""

import time
from datetime import datetime, timezone
from fastapi import APIRouter

from ..models import HealthResponse, ReadinessResponse, LivenessResponse
from .. import __version__

router = APIRouter()

# Reference point for uptime
_PROCESS_START = time.monotonic()


def uptime_seconds() -> float:
    return time.monotonic() - _PROCESS_START


@router.get("", response_model=HealthResponse, tags=["System"])
async def health_check():
    """Basic health check."""
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc).isoformat(),
        uptime=uptime_seconds(),
        version=__version__,
        message="Email Validation API is running"
    )


@router.get("/ready", response_model=ReadinessResponse, tags=["System"])
async def readiness():
    """Readiness probe."""
    return ReadinessResponse(ready=True)


@router.get("/live", response_model=LivenessResponse, tags=["System"])
async def liveness():
    """Liveness probe."""
    return LivenessResponse(alive=True)
