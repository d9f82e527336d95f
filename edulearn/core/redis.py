# ruff: noqa: PLW0603
"""Redis connection management.

Redis backs the fixed-window rate limits on the public signup and login
endpoints. It is optional at runtime: when it is down the application keeps
serving and the limiter fails open.
"""

import redis.asyncio as redis

from edulearn.config import get_settings
from edulearn.core.logging import get_logger


logger = get_logger(__name__)

_redis_client: redis.Redis | None = None


async def init_redis() -> redis.Redis:
    """Initialize the Redis connection pool and verify it answers.

    Raises:
        redis.ConnectionError: If the server does not answer PING
    """
    global _redis_client

    settings = get_settings()

    _redis_client = redis.from_url(
        settings.redis_url,
        max_connections=settings.redis_max_connections,
        socket_timeout=settings.redis_socket_timeout,
        socket_connect_timeout=settings.redis_socket_connect_timeout,
        retry_on_timeout=settings.redis_retry_on_timeout,
        health_check_interval=settings.redis_health_check_interval,
        decode_responses=True,
    )

    try:
        await _redis_client.ping()
        logger.info("redis_connected")
    except redis.ConnectionError as e:
        logger.warning("redis_connection_failed", error=str(e))
        _redis_client = None
        raise

    return _redis_client


async def shutdown_redis() -> None:
    """Close Redis connection."""
    global _redis_client

    if _redis_client:
        await _redis_client.aclose()
        logger.info("redis_disconnected")
        _redis_client = None


def get_redis() -> redis.Redis | None:
    """Get Redis client instance (None when not connected)."""
    return _redis_client


async def ping_redis() -> bool:
    """Check whether Redis is connected and answering."""
    if _redis_client is None:
        return False
    try:
        return bool(await _redis_client.ping())
    except redis.RedisError as e:
        logger.warning("redis_ping_failed", error=str(e))
        return False


def rate_limit_key(scope: str, client_ip: str) -> str:
    """Build the counter key for a rate-limited scope and client."""
    return f"rate_limit:{scope}:{client_ip}"
