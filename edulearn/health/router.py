"""Health check endpoints."""

from fastapi import APIRouter, Request, status
from fastapi.responses import ORJSONResponse

from edulearn.config import get_settings
from edulearn.core.database import ping_cassandra
from edulearn.core.redis import ping_redis


router = APIRouter(prefix="/health", tags=["health"])


@router.get("/live")
async def liveness() -> dict[str, str]:
    """Liveness probe - checks if the application is running."""
    return {"status": "alive"}


@router.get("/ready")
async def readiness(request: Request) -> ORJSONResponse:
    """Readiness probe - Cassandra must answer, Redis is reported only.

    Redis backs rate limiting, which fails open, so its absence does not make
    the instance unready.
    """
    session = getattr(request.app.state, "cassandra_session", None)
    cassandra_ok = session is not None and await ping_cassandra(session)
    redis_ok = await ping_redis()

    return ORJSONResponse(
        status_code=status.HTTP_200_OK
        if cassandra_ok
        else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "ready" if cassandra_ok else "unavailable",
            "checks": {"cassandra": cassandra_ok, "redis": redis_ok},
        },
    )


@router.get("")
async def health() -> dict[str, str]:
    """General health check endpoint."""
    settings = get_settings()
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
    }
