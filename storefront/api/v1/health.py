"""Health check endpoints."""

import logging
from typing import Annotated

import redis.asyncio as aioredis
from fastapi import APIRouter, Depends
from sqlalchemy import text

from storefront.core.config import settings
from storefront.core.database import execute_guarded
from storefront.core.deps import DBSession, get_redis
from storefront.schemas.common import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(
    db: DBSession,
    redis: Annotated[aioredis.Redis, Depends(get_redis)],
) -> HealthResponse:
    """
    Health check endpoint.

    Checks database and Redis connectivity and returns service status.
    """
    status = "healthy"
    checks: dict[str, str] = {}

    try:
        await execute_guarded(db, text("SELECT 1"), operation="health check")
        checks["database"] = "healthy"
    except Exception as e:
        logger.warning("Database health check failed: %s", e)
        status = "unhealthy"
        checks["database"] = f"unhealthy: {e}"

    # Redis only backs the optional analytics sink; an outage degrades
    # analytics but search keeps serving.
    try:
        await redis.ping()
        checks["redis"] = "healthy"
    except Exception as e:
        logger.warning("Redis health check failed: %s", e)
        if settings.analytics_sink == "redis":
            status = "degraded" if status == "healthy" else status
        checks["redis"] = f"unhealthy: {e}"

    return HealthResponse(
        status=status,
        version=settings.version,
        environment=settings.environment,
        checks=checks,
    )


@router.get("/health/live")
async def liveness_check() -> dict[str, str]:
    """Liveness check for container orchestration."""
    return {"status": "alive"}


@router.get("/health/ready")
async def readiness_check(db: DBSession) -> dict[str, str]:
    """
    Readiness check for container orchestration.

    Checks that the catalog store answers queries within the store
    timeout; a slow or failing store answers 503.
    """
    await execute_guarded(db, text("SELECT 1"), operation="readiness check")
    return {"status": "ready"}
