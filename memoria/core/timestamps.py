"""Timestamp helpers - every comparison in core happens on aware UTC datetimes.

SQLite (tests) returns naive datetimes even for DateTime(timezone=True)
columns; values are stored in UTC, so a naive value is read as UTC.
"""

from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes; convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def latest(*values: datetime | None) -> datetime | None:
    """Most recent of the given timestamps, ignoring None."""
    present = [as_utc(v) for v in values if v is not None]
    return max(present) if present else None
