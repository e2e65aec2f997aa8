"""UTC datetime helpers.

Every datetime in the system is timezone-aware UTC, in memory and on the
wire. Naive input is assumed to already be UTC.
"""

from datetime import datetime, timezone


def utcnow() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive values; convert aware values to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def start_of_day(value: datetime | None = None) -> datetime:
    """Return UTC midnight of the day containing ``value`` (default: now)."""
    value = ensure_utc(value) if value is not None else utcnow()
    return value.replace(hour=0, minute=0, second=0, microsecond=0)
