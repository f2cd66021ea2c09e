"""RateLimiter — fixed-window request budgets with fail-open semantics.

If the counter store is unreachable the request is ALLOWED and a warning is logged:
availability of the marketplace takes priority over strict limiting while the
store is down.
"""

import logging
import math
from collections.abc import Callable
from datetime import datetime

from src.pm_common.datetime_utils import utc_now
from src.pm_ratelimit.config import DEFAULT_WINDOW_SECONDS, limit_for
from src.pm_ratelimit.domain.models import RateLimitStoreUnavailable
from src.pm_ratelimit.domain.repository import RateLimitStoreProtocol

logger = logging.getLogger("pm.ratelimit")


class RateLimiter:
    def __init__(
        self,
        store: RateLimitStoreProtocol,
        window_seconds: int = DEFAULT_WINDOW_SECONDS,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = store
        self._window_seconds = window_seconds
        self._clock = clock

    async def allow(
        self,
        identifier: str,
        endpoint: str,
        limit: int | None = None,
        window_seconds: int | None = None,
    ) -> bool:
        effective_limit = limit if limit is not None else limit_for(endpoint)
        window = window_seconds if window_seconds is not None else self._window_seconds
        try:
            return await self._store.try_acquire(
                identifier, endpoint, effective_limit, window, self._clock()
            )
        except RateLimitStoreUnavailable as exc:
            logger.warning(
                "Rate limit store unavailable, allowing %s on %s: %s",
                identifier, endpoint, exc,
            )
            return True

    async def remaining(
        self,
        identifier: str,
        endpoint: str,
        limit: int | None = None,
    ) -> int:
        effective_limit = limit if limit is not None else limit_for(endpoint)
        try:
            counter = await self._store.get_counter(identifier, endpoint)
        except RateLimitStoreUnavailable as exc:
            logger.warning("Rate limit store unavailable for remaining(): %s", exc)
            return effective_limit
        if counter is None or counter.is_expired(self._clock()):
            return effective_limit
        return max(0, effective_limit - counter.count)

    async def retry_after(self, identifier: str, endpoint: str) -> int:
        """Whole seconds until the current window resets (at least 1)."""
        try:
            counter = await self._store.get_counter(identifier, endpoint)
        except RateLimitStoreUnavailable:
            return self._window_seconds
        if counter is None:
            return 1
        seconds = (counter.reset_at - self._clock()).total_seconds()
        return max(1, math.ceil(seconds))
