"""Unit tests for the Redis-backed rate limit store (Redis client mocked)."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from src.pm_ratelimit.domain.models import RateLimitStoreUnavailable
from src.pm_ratelimit.infrastructure.redis_store import RedisRateLimitStore

T0 = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)


def _store(redis: AsyncMock) -> RedisRateLimitStore:
    async def factory() -> AsyncMock:
        return redis

    return RedisRateLimitStore(factory)


class TestTryAcquire:
    async def test_script_called_with_key_and_window(self) -> None:
        redis = AsyncMock()
        redis.eval.return_value = 1
        allowed = await _store(redis).try_acquire("1.2.3.4", "trades", 20, 60, T0)

        assert allowed is True
        args = redis.eval.call_args.args
        assert args[1] == 1
        assert args[2] == "ratelimit:trades:1.2.3.4"
        assert args[3:] == (20, 60000, int(T0.timestamp() * 1000))

    async def test_denied(self) -> None:
        redis = AsyncMock()
        redis.eval.return_value = 0
        assert await _store(redis).try_acquire("a", "trades", 20, 60, T0) is False

    async def test_connection_error_becomes_unavailable(self) -> None:
        redis = AsyncMock()
        redis.eval.side_effect = RedisConnectionError("refused")
        with pytest.raises(RateLimitStoreUnavailable):
            await _store(redis).try_acquire("a", "trades", 20, 60, T0)


class TestGetCounter:
    async def test_missing_key(self) -> None:
        redis = AsyncMock()
        redis.hgetall.return_value = {}
        assert await _store(redis).get_counter("a", "trades") is None

    async def test_decodes_fields(self) -> None:
        redis = AsyncMock()
        reset_ms = int(T0.timestamp() * 1000)
        redis.hgetall.return_value = {"count": "7", "reset_at": str(reset_ms)}
        counter = await _store(redis).get_counter("a", "trades")
        assert counter is not None
        assert counter.count == 7
        assert counter.reset_at == T0
