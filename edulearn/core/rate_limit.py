"""Redis-backed rate limiting for public endpoints.

Fixed window per client IP: INCR the counter, set its TTL on the first hit,
reject once it passes the limit. When Redis is unavailable the request is
allowed and a warning is logged.
"""

from collections.abc import Awaitable, Callable
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from edulearn.config.settings import Settings, get_settings
from edulearn.core.logging import get_logger
from edulearn.core.middleware import get_client_ip
from edulearn.core.redis import get_redis, rate_limit_key


logger = get_logger(__name__)


async def check_rate_limit(key: str, limit: int, window: int) -> tuple[bool, int, int]:
    """Check and update the counter for a key.

    Args:
        key: Counter key (e.g. "rate_limit:login:192.168.1.1")
        limit: Maximum requests allowed in the window
        window: Window length in seconds

    Returns:
        Tuple of (is_allowed, current_count, remaining)
    """
    redis_client = get_redis()

    if redis_client is None:
        logger.warning("rate_limit_redis_unavailable", key=key, action="allowing_request")
        return True, 0, limit

    try:
        current = await redis_client.incr(key)
        if current == 1:
            await redis_client.expire(key, window)
    except Exception as e:
        logger.error(
            "rate_limit_redis_error",
            key=key,
            error=str(e),
            action="allowing_request",
        )
        return True, 0, limit

    return current <= limit, current, max(0, limit - current)


def rate_limiter(
    scope: str,
    limit_of: Callable[[Settings], int],
    message: str = "Too many requests. Please try again later.",
) -> Callable[..., Awaitable[None]]:
    """Build a FastAPI dependency enforcing a per-IP limit.

    Args:
        scope: Counter namespace, one per endpoint family
        limit_of: Reads the per-window limit from settings
        message: Detail returned with the 429 response
    """

    async def dependency(
        request: Request,
        settings: Annotated[Settings, Depends(get_settings)],
    ) -> None:
        client_ip = get_client_ip(request, settings.trusted_hosts)
        limit = limit_of(settings)
        window = settings.rate_limit_window_seconds

        is_allowed, current, remaining = await check_rate_limit(
            rate_limit_key(scope, client_ip), limit, window
        )
        if not is_allowed:
            logger.warning(
                "rate_limit_exceeded",
                scope=scope,
                client_ip=client_ip,
                requests=current,
                limit=limit,
            )
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail=message,
                headers={
                    "Retry-After": str(window),
                    "X-RateLimit-Limit": str(limit),
                    "X-RateLimit-Remaining": str(remaining),
                },
            )

    return dependency


rate_limit_signup = rate_limiter(
    "signup",
    lambda s: s.rate_limit_signup_per_minute,
    "Too many signup requests. Please wait a minute before trying again.",
)
rate_limit_login = rate_limiter(
    "login",
    lambda s: s.rate_limit_login_per_minute,
    "Too many login attempts. Please wait a minute before trying again.",
)
