"""In-process rate limit store — single worker only (tests, local demo).

Each key gets its own asyncio.Lock so the read-compare-increment sequence is atomic
with respect to other coroutines hitting the same (identifier, endpoint). Counters and
locks are never evicted, so memory grows with the number of distinct clients; use the
redis or postgres backend for long-running deployments.
"""

import asyncio
from collections import defaultdict
from datetime import datetime, timedelta

from src.pm_ratelimit.domain.models import RateLimitCounter


class InMemoryRateLimitStore:
    def __init__(self) -> None:
        self._counters: dict[tuple[str, str], RateLimitCounter] = {}
        self._locks: defaultdict[tuple[str, str], asyncio.Lock] = defaultdict(asyncio.Lock)

    async def try_acquire(
        self,
        identifier: str,
        endpoint: str,
        limit: int,
        window_seconds: int,
        now: datetime,
    ) -> bool:
        key = (identifier, endpoint)
        async with self._locks[key]:
            counter = self._counters.get(key)
            if counter is None or counter.is_expired(now):
                self._counters[key] = RateLimitCounter(
                    identifier=identifier,
                    endpoint=endpoint,
                    count=1,
                    reset_at=now + timedelta(seconds=window_seconds),
                )
                return True
            if counter.count >= limit:
                return False
            counter.count += 1
            return True

    async def get_counter(self, identifier: str, endpoint: str) -> RateLimitCounter | None:
        counter = self._counters.get((identifier, endpoint))
        if counter is None:
            return None
        return RateLimitCounter(
            identifier=counter.identifier,
            endpoint=counter.endpoint,
            count=counter.count,
            reset_at=counter.reset_at,
        )
