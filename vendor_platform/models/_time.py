"""Timestamp helpers shared by the vendor models.

SQLite returns naive datetimes for ``DateTime(timezone=True)`` columns, so
every comparison against "now" goes through ``as_utc``.
"""

from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes read back from the database."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def iso_or_none(value) -> str | None:
    return value.isoformat() if value else None
