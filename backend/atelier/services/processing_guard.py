"""Per-batch in-flight guard.

Rejects a second move/split/hold request for a batch while the first is
still being written and committed, so a double-tapped button cannot
produce two splits. Uses a Redis key with a TTL when Redis is connected,
otherwise a process-local map.

Each acquire stores its own token; release deletes the key only while it
still carries that token, so a request that outlived the TTL cannot free a
batch some later request now holds.

The guard fails open: if Redis errors while acquiring, the request goes
through unguarded and a warning is logged. A split that then races another
is still refused by the store's conditional shrink.
"""

import asyncio
import logging
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from redis.exceptions import RedisError

from atelier.core.config import settings
from atelier.core.redis import get_redis

logger = logging.getLogger(__name__)

KEY_PREFIX = "processing:batch:"

# Compare-and-delete: only the holder of the token may release the key.
RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
end
return 0
"""


class BatchBusyError(Exception):
    """Raised when another request is already processing the batch."""

    def __init__(self, batch_id: str) -> None:
        super().__init__(f"Batch {batch_id} is already being processed")
        self.batch_id = batch_id


class BatchProcessingGuard:
    """Acquire/release per-batch processing markers."""

    def __init__(self, ttl_seconds: int | None = None) -> None:
        self.ttl_seconds = ttl_seconds or settings.PROCESSING_LOCK_TTL_SECONDS
        self._local: dict[str, str] = {}
        self._lock = asyncio.Lock()

    async def _acquire(self, batch_id: str, token: str) -> bool:
        try:
            redis = get_redis()
        except RuntimeError:
            async with self._lock:
                if batch_id in self._local:
                    return False
                self._local[batch_id] = token
                return True

        try:
            return bool(await redis.set(KEY_PREFIX + batch_id, token, nx=True, ex=self.ttl_seconds))
        except RedisError:
            logger.warning("Redis error acquiring guard for %s, allowing request", batch_id)
            return True

    async def _release(self, batch_id: str, token: str) -> None:
        try:
            redis = get_redis()
        except RuntimeError:
            async with self._lock:
                if self._local.get(batch_id) == token:
                    del self._local[batch_id]
            return

        try:
            released = await redis.eval(RELEASE_SCRIPT, 1, KEY_PREFIX + batch_id, token)
        except RedisError:
            logger.warning("Redis error releasing guard for %s; key expires in %ss", batch_id, self.ttl_seconds)
            return
        if not released:
            logger.warning("Guard for %s expired before release (ttl %ss)", batch_id, self.ttl_seconds)

    @asynccontextmanager
    async def hold(self, batch_id: str) -> AsyncIterator[None]:
        """Context manager marking ``batch_id`` as in flight."""
        token = uuid.uuid4().hex
        if not await self._acquire(batch_id, token):
            raise BatchBusyError(batch_id)
        try:
            yield
        finally:
            await self._release(batch_id, token)


processing_guard = BatchProcessingGuard()


def get_processing_guard() -> BatchProcessingGuard:
    """FastAPI dependency returning the shared guard."""
    return processing_guard
