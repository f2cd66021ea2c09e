"""UTC datetime utilities."""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """Return timezone-aware UTC now."""
    return datetime.now(UTC)


def ensure_utc(dt: datetime) -> datetime:
    """Treat naive datetimes coming back from the DB driver as UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt
