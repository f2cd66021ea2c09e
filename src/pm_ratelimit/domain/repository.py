"""Rate limit store Protocol.

`try_acquire` MUST be a single atomic compare-and-increment per key: two concurrent
callers racing for the last slot can never both be admitted.
"""

from datetime import datetime
from typing import Protocol

from src.pm_ratelimit.domain.models import RateLimitCounter


class RateLimitStoreProtocol(Protocol):
    async def try_acquire(
        self,
        identifier: str,
        endpoint: str,
        limit: int,
        window_seconds: int,
        now: datetime,
    ) -> bool:
        """Create / reset / increment the counter and report whether the request fits.

        Denied requests leave the counter untouched.
        Raises RateLimitStoreUnavailable when the backend is unreachable.
        """
        ...

    async def get_counter(
        self,
        identifier: str,
        endpoint: str,
    ) -> RateLimitCounter | None: ...
