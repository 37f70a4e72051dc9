"""
Health Check Routes

FastAPI endpoints for service health and readiness checks.
"""

import logging
from datetime import UTC, datetime

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from dbchat import __version__
from dbchat.config import get_settings
from dbchat.models.api import HealthResponse, ReadinessResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health", response_model=HealthResponse, status_code=status.HTTP_200_OK)
async def health() -> HealthResponse:
    """
    Basic liveness check.

    Returns 200 OK if the service is running.
    """
    return HealthResponse(
        status="healthy",
        version=__version__,
        timestamp=datetime.now(UTC).isoformat(),
    )


@router.get("/ready", status_code=status.HTTP_200_OK)
async def readiness() -> JSONResponse:
    """
    Readiness check for the query pipeline.

    Checks:
    - Pipeline is initialized (an LLM provider is configured)
    - A default DATABASE_URL is configured (informational only)

    Returns:
        200 OK if the pipeline is ready
        503 Service Unavailable otherwise
    """
    from dbchat.api.main import app_state

    checks = {
        "pipeline": app_state["pipeline"] is not None,
        "default_database": get_settings().database.url is not None,
    }
    ready = checks["pipeline"]
    if not ready:
        logger.warning("Pipeline check: FAILED (not initialized)")

    response_data = ReadinessResponse(
        status="ready" if ready else "not_ready",
        version=__version__,
        timestamp=datetime.now(UTC).isoformat(),
        checks=checks,
    )
    return JSONResponse(
        status_code=status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE,
        content=response_data.model_dump(),
    )
