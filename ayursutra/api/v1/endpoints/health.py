"""Health check endpoints."""

from datetime import UTC, datetime

from fastapi import APIRouter, Response, status
from pydantic import BaseModel

from ayursutra.config import settings
from ayursutra.core.redis_client import check_redis_connection
from ayursutra.database import check_database_connection

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    version: str
    environment: str
    timestamp: datetime


class DetailedHealthResponse(HealthResponse):
    """Health check including dependency status."""

    database: str
    redis: str


def _redis_in_use() -> bool:
    return settings.cache_enabled or settings.rate_limit_enabled


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Basic health check",
)
async def health_check() -> HealthResponse:
    """Report that the process is serving requests."""
    return HealthResponse(
        status="healthy",
        version=settings.app_version,
        environment=settings.environment,
        timestamp=datetime.now(UTC),
    )


@router.get(
    "/health/detailed",
    response_model=DetailedHealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Detailed health check",
)
async def detailed_health_check() -> DetailedHealthResponse:
    """
    Detailed health check with database and Redis status.

    Redis is reported as ``disabled`` when neither caching nor rate limiting
    uses it, and does not degrade the overall status in that case.
    """
    db_healthy = await check_database_connection()

    if _redis_in_use():
        redis_healthy = await check_redis_connection()
        redis_status = "healthy" if redis_healthy else "unhealthy"
    else:
        redis_healthy = True
        redis_status = "disabled"

    return DetailedHealthResponse(
        status="healthy" if db_healthy and redis_healthy else "degraded",
        version=settings.app_version,
        environment=settings.environment,
        timestamp=datetime.now(UTC),
        database="healthy" if db_healthy else "unhealthy",
        redis=redis_status,
    )


@router.get("/ready", summary="Readiness check")
async def readiness(response: Response) -> dict[str, str]:
    """Ready once the database answers; 503 otherwise."""
    if not await check_database_connection():
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return {"status": "not_ready", "database": "unhealthy"}
    return {"status": "ready", "database": "healthy"}


@router.get("/live", summary="Liveness check")
async def liveness() -> dict[str, str]:
    """Liveness check; no dependency checks."""
    return {"status": "alive"}


@router.get("/ping", summary="Simple ping")
async def ping() -> dict[str, str]:
    """
    Simple ping endpoint.

    Returns:
        Pong response
    """
    return {"message": "pong"}
