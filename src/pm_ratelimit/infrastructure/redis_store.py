"""RedisRateLimitStore — counters as Redis hashes, mutated by one Lua script.

Key pattern: "ratelimit:{endpoint}:{identifier}" with fields count / reset_at (epoch ms).
The script runs atomically inside Redis, so create/reset/increment/deny is a single
step per key. Keys carry a TTL of two windows; an evicted key behaves exactly like an
expired window.
"""

from collections.abc import Awaitable, Callable
from datetime import UTC, datetime

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from src.pm_ratelimit.domain.models import RateLimitCounter, RateLimitStoreUnavailable

_TRY_ACQUIRE_LUA = """
local key = KEYS[1]
local limit = tonumber(ARGV[1])
local window_ms = tonumber(ARGV[2])
local now_ms = tonumber(ARGV[3])
local count = tonumber(redis.call('HGET', key, 'count'))
local reset_at = tonumber(redis.call('HGET', key, 'reset_at'))
if count == nil or reset_at == nil or reset_at < now_ms then
    redis.call('HSET', key, 'count', 1, 'reset_at', now_ms + window_ms)
    redis.call('PEXPIRE', key, window_ms * 2)
    return 1
end
if count >= limit then
    return 0
end
redis.call('HINCRBY', key, 'count', 1)
return 1
"""


def _key(identifier: str, endpoint: str) -> str:
    return f"ratelimit:{endpoint}:{identifier}"


def _to_ms(dt: datetime) -> int:
    return int(dt.timestamp() * 1000)


class RedisRateLimitStore:
    def __init__(self, redis_factory: Callable[[], Awaitable[aioredis.Redis]]) -> None:
        self._redis_factory = redis_factory

    async def try_acquire(
        self,
        identifier: str,
        endpoint: str,
        limit: int,
        window_seconds: int,
        now: datetime,
    ) -> bool:
        try:
            redis = await self._redis_factory()
            allowed = await redis.eval(
                _TRY_ACQUIRE_LUA,
                1,
                _key(identifier, endpoint),
                limit,
                window_seconds * 1000,
                _to_ms(now),
            )
        except (RedisError, OSError) as exc:
            raise RateLimitStoreUnavailable(str(exc)) from exc
        return int(allowed) == 1

    async def get_counter(self, identifier: str, endpoint: str) -> RateLimitCounter | None:
        try:
            redis = await self._redis_factory()
            fields = await redis.hgetall(_key(identifier, endpoint))
        except (RedisError, OSError) as exc:
            raise RateLimitStoreUnavailable(str(exc)) from exc
        if not fields:
            return None
        return RateLimitCounter(
            identifier=identifier,
            endpoint=endpoint,
            count=int(fields["count"]),
            reset_at=datetime.fromtimestamp(int(fields["reset_at"]) / 1000, UTC),
        )
