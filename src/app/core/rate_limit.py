"""
Rate Limiting

Sliding-window rate limiting for the public endpoints (application
submission and approval-link redemption). Uses the shared Redis client
and falls back to in-memory storage when Redis is unavailable.
"""

import logging
import time

from fastapi import HTTPException, Request, status

from app.core import redis as redis_module

logger = logging.getLogger(__name__)

# Fallback store: {key: [timestamp, ...]}
_memory_store: dict[str, list[float]] = {}


class RateLimitExceeded(HTTPException):
    """Raised when a client exceeds its request budget."""

    def __init__(self, limit: int, window_seconds: int):
        super().__init__(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail={
                "error": "RATE_LIMIT_EXCEEDED",
                "message": f"Rate limit exceeded. Maximum {limit} requests per {window_seconds} seconds.",
                "retry_after_seconds": window_seconds,
            },
            headers={"Retry-After": str(window_seconds)},
        )


async def _check_rate_limit_redis(client, key: str, limit: int, window_seconds: int) -> bool:
    """
    Sliding window over a Redis sorted set.

    Returns:
        True if the request is allowed
    """
    now = time.time()
    window_start = now - window_seconds

    pipe = client.pipeline()
    pipe.zremrangebyscore(key, 0, window_start)
    pipe.zcard(key)
    pipe.zadd(key, {str(now): now})
    pipe.expire(key, window_seconds)

    results = await pipe.execute()
    current_count = results[1]

    return current_count < limit


def _check_rate_limit_memory(key: str, limit: int, window_seconds: int) -> bool:
    """
    In-process sliding window. Not shared across workers.

    Returns:
        True if the request is allowed
    """
    now = time.time()
    window_start = now - window_seconds

    entries = [ts for ts in _memory_store.get(key, []) if ts > window_start]
    if len(entries) >= limit:
        _memory_store[key] = entries
        return False

    entries.append(now)
    _memory_store[key] = entries
    return True


async def check_rate_limit(key: str, limit: int, window_seconds: int) -> bool:
    """
    Check whether a request keyed by `key` is within its limit.

    Tries Redis first and falls back to memory on any Redis error.
    """
    client = redis_module.redis_client

    if client is not None:
        try:
            return await _check_rate_limit_redis(client, key, limit, window_seconds)
        except Exception as e:
            logger.warning(f"Redis rate limit check failed, using memory: {e}")

    return _check_rate_limit_memory(key, limit, window_seconds)


def reset_memory_store() -> None:
    """Clear the in-memory fallback store."""
    _memory_store.clear()


class RateLimiter:
    """
    FastAPI dependency enforcing a per-client-IP limit for one endpoint group.

    Usage:
        submission_limiter = RateLimiter("submission", limit=5, window_seconds=3600)

        @router.post("", dependencies=[Depends(submission_limiter)])
        async def submit(...):
            ...
    """

    def __init__(self, scope: str, limit: int, window_seconds: int):
        self.scope = scope
        self.limit = limit
        self.window_seconds = window_seconds

    async def __call__(self, request: Request) -> None:
        client_ip = request.client.host if request.client else "unknown"
        key = f"rate_limit:{self.scope}:{client_ip}"

        allowed = await check_rate_limit(key, self.limit, self.window_seconds)

        if not allowed:
            logger.warning(
                f"Rate limit exceeded for {key}: {self.limit}/{self.window_seconds}s"
            )
            raise RateLimitExceeded(self.limit, self.window_seconds)


__all__ = [
    "RateLimiter",
    "RateLimitExceeded",
    "check_rate_limit",
    "reset_memory_store",
]
