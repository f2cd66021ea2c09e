"""Per-route rate limiting as a FastAPI dependency.

Counters are keyed by (client identifier, endpoint group). Routes of one group share
a counter but may enforce different limits, e.g. GET /trades allows 50 per window
while POST /trades allows 20:

    @router.get("", dependencies=[Depends(rate_limit("trades", 50))])

The client identifier is the first X-Forwarded-For hop (the service runs behind a
reverse proxy), else the socket peer address, else "unknown".
"""

import logging
from collections.abc import Awaitable, Callable

from fastapi import Depends, Request

from src.container import get_rate_limiter
from src.pm_common.errors import RateLimitError
from src.pm_ratelimit.domain.service import RateLimiter

logger = logging.getLogger("pm.ratelimit")

UNKNOWN_CLIENT = "unknown"


def client_identifier(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop
    if request.client and request.client.host:
        return request.client.host
    return UNKNOWN_CLIENT


def rate_limit(endpoint: str, limit: int | None = None) -> Callable[..., Awaitable[None]]:
    """Build a dependency enforcing `limit` (default: the endpoint group's budget)."""

    async def _check(
        request: Request,
        limiter: RateLimiter = Depends(get_rate_limiter),
    ) -> None:
        identifier = client_identifier(request)
        if await limiter.allow(identifier, endpoint, limit):
            return
        retry_after = await limiter.retry_after(identifier, endpoint)
        logger.info("Rate limited %s on %s, retry in %ds", identifier, endpoint, retry_after)
        raise RateLimitError(retry_after)

    return _check
