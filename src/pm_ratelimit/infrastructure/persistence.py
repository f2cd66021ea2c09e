"""PostgresRateLimitStore — counters in the rate_limits table.

One conditional upsert per request:
  - no row               -> INSERT count=1
  - window elapsed       -> UPDATE count=1, reset_at=new
  - count < limit        -> UPDATE count=count+1
  - count >= limit       -> WHERE clause fails, no row returned, no mutation
The row lock taken by ON CONFLICT DO UPDATE serialises concurrent callers.

Counter writes commit in their own transaction, independent of the request session.
"""

from datetime import datetime, timedelta

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.pm_common.datetime_utils import ensure_utc
from src.pm_ratelimit.domain.models import RateLimitCounter, RateLimitStoreUnavailable

_TRY_ACQUIRE_SQL = text("""
    INSERT INTO rate_limits (identifier, endpoint, count, reset_at)
    VALUES (:identifier, :endpoint, 1, :reset_at)
    ON CONFLICT (identifier, endpoint) DO UPDATE
    SET count = CASE
                    WHEN rate_limits.reset_at < :now THEN 1
                    ELSE rate_limits.count + 1
                END,
        reset_at = CASE
                       WHEN rate_limits.reset_at < :now THEN EXCLUDED.reset_at
                       ELSE rate_limits.reset_at
                   END
    WHERE rate_limits.reset_at < :now OR rate_limits.count < :limit
    RETURNING count
""")

_GET_COUNTER_SQL = text("""
    SELECT identifier, endpoint, count, reset_at
    FROM rate_limits
    WHERE identifier = :identifier AND endpoint = :endpoint
""")


class PostgresRateLimitStore:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def try_acquire(
        self,
        identifier: str,
        endpoint: str,
        limit: int,
        window_seconds: int,
        now: datetime,
    ) -> bool:
        params = {
            "identifier": identifier,
            "endpoint": endpoint,
            "limit": limit,
            "now": now,
            "reset_at": now + timedelta(seconds=window_seconds),
        }
        try:
            async with self._session_factory() as session, session.begin():
                result = await session.execute(_TRY_ACQUIRE_SQL, params)
                return result.fetchone() is not None
        except (SQLAlchemyError, OSError) as exc:
            raise RateLimitStoreUnavailable(str(exc)) from exc

    async def get_counter(self, identifier: str, endpoint: str) -> RateLimitCounter | None:
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    _GET_COUNTER_SQL, {"identifier": identifier, "endpoint": endpoint}
                )
                row = result.fetchone()
        except (SQLAlchemyError, OSError) as exc:
            raise RateLimitStoreUnavailable(str(exc)) from exc
        if row is None:
            return None
        return RateLimitCounter(
            identifier=row.identifier,
            endpoint=row.endpoint,
            count=row.count,
            reset_at=ensure_utc(row.reset_at),
        )
