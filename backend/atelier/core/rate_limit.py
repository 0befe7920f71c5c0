"""Per-client rate limiting for the board API.

Two traffic profiles: shop-floor screens poll the board and stage groups
continuously (``BOARD_READS``), while stage moves, splits, holds, notes and
dispatches are operator taps (``BOARD_MUTATIONS``) and get a much tighter
budget. Counts live in a Redis sorted-set window; without Redis each
worker keeps token buckets in memory.
"""

import logging
import threading
import time
from dataclasses import dataclass, field

from fastapi import HTTPException, Request, status

from atelier.core.redis import get_redis

logger = logging.getLogger(__name__)

READ_RATE_LIMIT = 120
READ_WINDOW_SECONDS = 60

MUTATION_RATE_LIMIT = 30
MUTATION_WINDOW_SECONDS = 60


@dataclass(frozen=True)
class RateLimitProfile:
    name: str
    limit: int
    window: int
    label: str

    def key(self, client: str) -> str:
        return f"ratelimit:{self.name}:{client}"

    def rejection(self, retry_after: int) -> HTTPException:
        return HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=f"Too many {self.label}. Try again in {retry_after}s.",
            headers={"Retry-After": str(retry_after)},
        )


BOARD_READS = RateLimitProfile("read", READ_RATE_LIMIT, READ_WINDOW_SECONDS, "board requests")
BOARD_MUTATIONS = RateLimitProfile(
    "mutation", MUTATION_RATE_LIMIT, MUTATION_WINDOW_SECONDS, "production changes"
)


@dataclass
class _TokenBucket:
    """Token bucket for one client key."""

    tokens: float
    last_refill: float
    limit: int
    window: int

    def consume(self, now: float) -> tuple[bool, int]:
        """Try to consume a token. Returns (allowed, retry_after_seconds)."""
        refill_rate = self.limit / self.window
        self.tokens = min(self.limit, self.tokens + (now - self.last_refill) * refill_rate)
        self.last_refill = now

        if self.tokens < 1.0:
            return False, max(1, int((1.0 - self.tokens) / refill_rate))
        self.tokens -= 1.0
        return True, 0


@dataclass
class _InMemoryLimiter:
    """Token buckets keyed by profile and client, shared across threads."""

    _buckets: dict[str, _TokenBucket] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock)

    def check(self, key: str, limit: int, window: int) -> tuple[bool, int]:
        now = time.time()
        with self._lock:
            bucket = self._buckets.get(key)
            if bucket is None or (bucket.limit, bucket.window) != (limit, window):
                bucket = self._buckets[key] = _TokenBucket(float(limit), now, limit, window)
            return bucket.consume(now)


_memory_limiter = _InMemoryLimiter()


def _client_ip(request: Request) -> str:
    """First address in X-Forwarded-For, else the socket peer."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


async def _window_retry_after(redis, key: str, profile: RateLimitProfile) -> int | None:
    """Record one request in the Redis window; seconds to wait if over the limit."""
    now = time.time()
    pipe = redis.pipeline()
    pipe.zremrangebyscore(key, 0, now - profile.window)
    pipe.zadd(key, {str(now): now})
    pipe.zcard(key)
    pipe.zrange(key, 0, 0, withscores=True)
    pipe.expire(key, profile.window)
    _, _, count, oldest, _ = await pipe.execute()

    if count <= profile.limit:
        return None
    if not oldest:
        return profile.window
    return max(1, int(oldest[0][1] + profile.window - now))


async def enforce(request: Request, profile: RateLimitProfile) -> None:
    """Raise HTTP 429 once the client exceeds the profile's budget."""
    key = profile.key(_client_ip(request))

    try:
        redis = get_redis()
    except RuntimeError:
        allowed, retry_after = _memory_limiter.check(key, profile.limit, profile.window)
        if not allowed:
            raise profile.rejection(retry_after)
        return

    retry_after = await _window_retry_after(redis, key, profile)
    if retry_after is not None:
        logger.info("Rate limit hit for %s (%s)", key, profile.label)
        raise profile.rejection(retry_after)


async def rate_limit_default(request: Request) -> None:
    """Board reads: 120 requests per 60 seconds."""
    await enforce(request, BOARD_READS)


async def rate_limit_mutation(request: Request) -> None:
    """Stage moves, holds, notes and dispatches: 30 requests per 60 seconds."""
    await enforce(request, BOARD_MUTATIONS)
