# src/whatswho/db/time.py
"""Clock helpers for message timestamps and passcode expiry."""

from datetime import UTC, datetime


def utcnow() -> datetime:
    """Return the current instant as an aware UTC datetime."""
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to ``value`` when the backend returned it naive.

    SQLite stores ``DateTime(timezone=True)`` columns without an offset, so
    rows read back from it compare unequal to :func:`utcnow` otherwise.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)
