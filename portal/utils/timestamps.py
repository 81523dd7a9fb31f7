"""Timestamp helpers."""

from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes (SQLite drops the offset on read)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def not_before(previous: datetime | None) -> datetime:
    """Current time, clamped so it never precedes ``previous``."""
    now = utcnow()
    previous = ensure_utc(previous)
    if previous is not None and previous > now:
        return previous
    return now
