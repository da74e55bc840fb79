"""Health check endpoints."""

from typing import Literal

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db, is_connectivity_failure
from app.core.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: Literal["ok", "degraded", "unhealthy"]
    database: Literal["connected", "disconnected", "error"] | None = None


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Liveness probe; never touches the database."""
    logger.debug("health.check_started")
    return HealthResponse(status="ok")


@router.get("/health/ready", response_model=HealthResponse)
async def readiness_check(
    db: AsyncSession = Depends(get_db),
) -> HealthResponse:
    """Readiness check including database connectivity.

    An unreachable database reports ``disconnected``; a reachable database
    that still fails the probe query reports ``error`` with a degraded status.

    Args:
        db: Database session dependency.

    Returns:
        Health status with database state.
    """
    logger.debug("health.readiness_check_started")

    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        disconnected = is_connectivity_failure(e)
        logger.error(
            "health.database_check_failed",
            error=str(e),
            error_type=type(e).__name__,
            disconnected=disconnected,
            exc_info=True,
        )
        if disconnected:
            return HealthResponse(status="unhealthy", database="disconnected")
        return HealthResponse(status="degraded", database="error")

    logger.info("health.database_connected")
    return HealthResponse(status="ok", database="connected")
