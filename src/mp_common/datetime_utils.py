"""Timestamps are TIMESTAMPTZ in PostgreSQL and aware UTC datetimes in Python."""

from datetime import UTC, datetime


def utc_now() -> datetime:
    return datetime.now(UTC)


def iso_or_none(value: datetime | None) -> str | None:
    """ISO-8601 for API payloads. The sentinel offer has no timestamp."""
    if value is None:
        return None
    return value.astimezone(UTC).isoformat()
