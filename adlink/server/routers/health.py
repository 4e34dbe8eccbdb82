"""
Health check endpoints.
"""

from fastapi import APIRouter

from adlink.common.cache import redis_client
from adlink.common.config import get_settings
from adlink.common.database import db
from adlink.schemas.response import HealthResponse

router = APIRouter()


@router.get("/")
async def root() -> dict:
    """Service landing info."""
    settings = get_settings()
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "gateway": "/g/{short_code}",
    }


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """
    Health check endpoint.

    Redis is optional: when disabled it does not degrade the status.
    """
    settings = get_settings()

    db_healthy = await db.health_check()
    redis_healthy = await redis_client.health_check()

    redis_ok = redis_healthy or not settings.redis.enabled
    status = "healthy" if (db_healthy and redis_ok) else "degraded"

    return HealthResponse(
        status=status,
        version=settings.app_version,
        database=db_healthy,
        redis=redis_healthy,
    )


@router.get("/ping")
async def ping() -> dict:
    """Simple ping endpoint."""
    return {"pong": True}


@router.get("/ready")
async def readiness_check() -> dict:
    """Readiness check for Kubernetes."""
    settings = get_settings()
    db_healthy = await db.health_check()
    redis_healthy = await redis_client.health_check() or not settings.redis.enabled

    if not db_healthy or not redis_healthy:
        return {"ready": False, "reason": "Dependencies not ready"}

    return {"ready": True}


@router.get("/live")
async def liveness_check() -> dict:
    """Liveness check for Kubernetes."""
    return {"alive": True}
