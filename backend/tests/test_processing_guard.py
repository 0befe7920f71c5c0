"""Tests for the per-batch processing guard."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from atelier.services.processing_guard import (
    KEY_PREFIX,
    RELEASE_SCRIPT,
    BatchBusyError,
    BatchProcessingGuard,
    get_processing_guard,
    processing_guard,
)


def _no_redis():
    raise RuntimeError("Redis client not initialized")


class TestInMemoryFallback:
    @pytest.mark.asyncio
    async def test_second_hold_is_rejected(self):
        guard = BatchProcessingGuard(ttl_seconds=5)
        with patch("atelier.services.processing_guard.get_redis", side_effect=_no_redis):
            async with guard.hold("BAT-1"):
                with pytest.raises(BatchBusyError) as exc_info:
                    async with guard.hold("BAT-1"):
                        pass
        assert exc_info.value.batch_id == "BAT-1"

    @pytest.mark.asyncio
    async def test_other_batches_unaffected(self):
        guard = BatchProcessingGuard(ttl_seconds=5)
        with patch("atelier.services.processing_guard.get_redis", side_effect=_no_redis):
            async with guard.hold("BAT-1"):
                async with guard.hold("BAT-2"):
                    pass

    @pytest.mark.asyncio
    async def test_released_after_exception(self):
        guard = BatchProcessingGuard(ttl_seconds=5)
        with patch("atelier.services.processing_guard.get_redis", side_effect=_no_redis):
            with pytest.raises(ValueError):
                async with guard.hold("BAT-1"):
                    raise ValueError("boom")
            async with guard.hold("BAT-1"):
                pass


class TestRedisBacked:
    @pytest.mark.asyncio
    async def test_acquire_uses_set_nx_with_ttl(self):
        redis = MagicMock()
        redis.set = AsyncMock(return_value=True)
        redis.eval = AsyncMock(return_value=1)
        guard = BatchProcessingGuard(ttl_seconds=30)

        with patch("atelier.services.processing_guard.get_redis", return_value=redis):
            async with guard.hold("BAT-7"):
                pass

        key, token = redis.set.await_args.args
        assert key == KEY_PREFIX + "BAT-7"
        assert redis.set.await_args.kwargs == {"nx": True, "ex": 30}
        redis.eval.assert_awaited_once_with(RELEASE_SCRIPT, 1, KEY_PREFIX + "BAT-7", token)

    @pytest.mark.asyncio
    async def test_each_hold_gets_its_own_token(self):
        redis = MagicMock()
        redis.set = AsyncMock(return_value=True)
        redis.eval = AsyncMock(return_value=1)
        guard = BatchProcessingGuard(ttl_seconds=30)

        with patch("atelier.services.processing_guard.get_redis", return_value=redis):
            async with guard.hold("BAT-7"):
                pass
            async with guard.hold("BAT-7"):
                pass

        tokens = [c.args[1] for c in redis.set.await_args_list]
        assert len(set(tokens)) == 2

    @pytest.mark.asyncio
    async def test_expired_hold_does_not_release_newer_holder(self):
        # the key stores whichever token acquired last; release only deletes a match
        stored: dict[str, str] = {}

        async def _set(key, value, nx, ex):
            if nx and key in stored:
                return None
            stored[key] = value
            return True

        async def _eval(script, numkeys, key, token):
            if stored.get(key) == token:
                del stored[key]
                return 1
            return 0

        redis = MagicMock()
        redis.set = AsyncMock(side_effect=_set)
        redis.eval = AsyncMock(side_effect=_eval)
        guard = BatchProcessingGuard(ttl_seconds=1)

        with patch("atelier.services.processing_guard.get_redis", return_value=redis):
            async with guard.hold("BAT-7"):
                stored.clear()  # TTL ran out mid-request
                assert await guard._acquire("BAT-7", "later-request")
            assert stored == {KEY_PREFIX + "BAT-7": "later-request"}

    @pytest.mark.asyncio
    async def test_existing_key_means_busy(self):
        redis = MagicMock()
        redis.set = AsyncMock(return_value=None)
        redis.eval = AsyncMock(return_value=1)
        guard = BatchProcessingGuard(ttl_seconds=30)

        with patch("atelier.services.processing_guard.get_redis", return_value=redis):
            with pytest.raises(BatchBusyError):
                async with guard.hold("BAT-7"):
                    pass
        redis.eval.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_redis_error_lets_request_through(self):
        redis = MagicMock()
        redis.set = AsyncMock(side_effect=RedisConnectionError("down"))
        redis.eval = AsyncMock(side_effect=RedisConnectionError("down"))
        guard = BatchProcessingGuard(ttl_seconds=30)

        ran = False
        with patch("atelier.services.processing_guard.get_redis", return_value=redis):
            async with guard.hold("BAT-7"):
                ran = True
        assert ran


class TestDependency:
    def test_returns_shared_guard(self):
        assert get_processing_guard() is processing_guard

    def test_default_ttl_from_settings(self):
        from atelier.core.config import settings

        assert BatchProcessingGuard().ttl_seconds == settings.PROCESSING_LOCK_TTL_SECONDS


class TestLocalTokens:
    @pytest.mark.asyncio
    async def test_release_with_foreign_token_keeps_hold(self):
        guard = BatchProcessingGuard(ttl_seconds=5)
        with patch("atelier.services.processing_guard.get_redis", side_effect=_no_redis):
            async with guard.hold("BAT-1"):
                await guard._release("BAT-1", "someone-else")
                assert "BAT-1" in guard._local
            assert "BAT-1" not in guard._local
