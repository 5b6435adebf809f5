"""
Health check and monitoring router.

Provides liveness and readiness endpoints.
"""

from datetime import datetime, timezone

import structlog
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .. import __version__
from ..config import settings
from ..database import get_db, get_db_stats

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api", tags=["health"])


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    timestamp: str
    service: str = settings.APP_NAME
    version: str = __version__


class ReadinessResponse(BaseModel):
    """Readiness check response model."""

    ready: bool
    checks: dict
    timestamp: str


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Health check",
    description="Basic health check endpoint - returns 200 if service is running",
)
def health_check():
    """
    Basic health check.

    Always returns 200 OK if the service is running.
    """
    return HealthResponse(status="healthy", timestamp=_now())


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    responses={503: {"description": "Database unavailable"}},
    summary="Readiness check",
    description="Check if the database accepts queries",
)
def readiness_check(db: Session = Depends(get_db)):
    """
    Readiness check.

    Returns 200 with pool statistics if ``SELECT 1`` succeeds, 503 otherwise.
    """
    try:
        db.execute(text("SELECT 1"))
        checks = {"database": "healthy", "pool": get_db_stats()}
    except SQLAlchemyError as e:
        logger.error("Readiness check failed", error=str(e))
        response = ReadinessResponse(
            ready=False, checks={"database": "unhealthy"}, timestamp=_now()
        )
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=response.model_dump()
        )

    return ReadinessResponse(ready=True, checks=checks, timestamp=_now())
