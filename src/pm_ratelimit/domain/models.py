"""Domain models for pm_ratelimit — pure dataclasses."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class RateLimitCounter:
    """Fixed-window counter keyed by (identifier, endpoint).

    Never deleted: once reset_at has passed, the next request restarts the window.
    """

    identifier: str
    endpoint: str
    count: int
    reset_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return self.reset_at < now


class RateLimitStoreUnavailable(Exception):
    """Raised by a store when its backend cannot be reached."""
