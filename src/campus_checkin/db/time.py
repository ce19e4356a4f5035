# src/campus_checkin/db/time.py
"""Time utilities shared by models and token handling."""

from datetime import UTC, datetime


def utcnow() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(UTC)


def ensure_aware(value: datetime) -> datetime:
    """Treat naive datetimes (as SQLite returns them) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def truncate_millis(value: datetime) -> datetime:
    """Drop sub-millisecond precision so the value survives an ISO round trip."""
    return value.replace(microsecond=(value.microsecond // 1000) * 1000)


def isoformat_millis(value: datetime) -> str:
    """Render a datetime as ``YYYY-MM-DDTHH:MM:SS.mmmZ`` in UTC."""
    rendered = ensure_aware(value).astimezone(UTC).isoformat(timespec="milliseconds")
    return rendered.replace("+00:00", "Z")
