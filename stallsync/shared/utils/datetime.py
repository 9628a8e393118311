"""
UTC datetime helpers.

Instants (createdAt, timestamp, lastUpdated) are stored as timezone-aware
UTC datetimes; calendar days (saleDate, attendance date) are stored as
``YYYY-MM-DD`` strings so they sort and range-filter as text.
"""

from datetime import UTC, date, datetime


def utc_now() -> datetime:
    """Return the current UTC datetime with timezone info."""
    return datetime.now(UTC)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """
    Ensure a datetime is UTC-aware.

    Naive values are assumed to be UTC; aware values are converted.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def date_key(value: date | datetime) -> str:
    """Return the ``YYYY-MM-DD`` key for a date (datetimes are taken in UTC)."""
    if isinstance(value, datetime):
        value = ensure_utc(value).date()
    return value.isoformat()


def parse_date_key(raw: str) -> date:
    """Parse a ``YYYY-MM-DD`` string; raises ValueError when malformed."""
    return date.fromisoformat(raw.strip())
