"""Async Redis connection manager.

The client lives on ``app.state``; a module-level reference is kept for
non-request code (rate limiter, batch processing guard). Both consumers fall
back to in-process state when Redis was never connected.
"""

import logging

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from atelier.core.config import settings

logger = logging.getLogger(__name__)

_client: aioredis.Redis | None = None


async def init_redis(app_state: object) -> aioredis.Redis | None:
    """Connect to Redis and store the client on app.state.

    Returns None (and leaves the fallbacks active) when the server is
    unreachable.
    """
    global _client
    client = aioredis.from_url(settings.REDIS_URL, decode_responses=True)
    try:
        await client.ping()
    except (RedisError, OSError):
        logger.warning("Redis at %s unreachable, using in-process fallbacks", settings.REDIS_URL)
        await client.aclose()
        app_state.redis = None  # type: ignore[attr-defined]
        return None
    app_state.redis = client  # type: ignore[attr-defined]
    _client = client
    return client


async def close_redis(app_state: object) -> None:
    """Close the Redis connection stored on app.state."""
    global _client
    client: aioredis.Redis | None = getattr(app_state, "redis", None)
    if client is not None:
        await client.aclose()
        app_state.redis = None  # type: ignore[attr-defined]
    _client = None


def get_redis() -> aioredis.Redis:
    """Accessor for non-request contexts.

    Raises RuntimeError when Redis is not connected so callers can switch
    to their in-memory fallback.
    """
    if _client is None:
        raise RuntimeError("Redis client not initialized. Call init_redis() first.")
    return _client
