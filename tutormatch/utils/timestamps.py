"""Timestamp utilities for UTC handling and database storage."""

from datetime import datetime, timezone
from typing import Optional

STORAGE_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


def utc_now() -> datetime:
    """Get current UTC time as timezone-aware datetime.

    Returns:
        Current UTC time with timezone info
    """
    return datetime.now(timezone.utc)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Ensure a datetime is timezone-aware and in UTC.

    If the datetime is timezone-naive, it's treated as UTC.

    Args:
        dt: Datetime to convert (can be None)

    Returns:
        Timezone-aware datetime in UTC, or None if input is None
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(timezone.utc)


def format_timestamp(dt: Optional[datetime]) -> Optional[str]:
    """Format a datetime as an ISO 8601 UTC string for storage.

    Args:
        dt: Datetime to format (naive values are treated as UTC)

    Returns:
        String such as ``2026-10-19T08:30:00.000000Z`` or None
    """
    if dt is None:
        return None
    return ensure_utc(dt).strftime(STORAGE_FORMAT)


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse a stored ISO 8601 string back to an aware UTC datetime.

    Accepts values with or without microseconds and with or without the
    trailing ``Z``.

    Args:
        value: Stored timestamp string

    Returns:
        Timezone-aware datetime in UTC, or None for empty input
    """
    if not value:
        return None

    raw = value.rstrip("Z")
    try:
        dt = datetime.strptime(raw, "%Y-%m-%dT%H:%M:%S.%f")
    except ValueError:
        dt = datetime.strptime(raw, "%Y-%m-%dT%H:%M:%S")

    return dt.replace(tzinfo=timezone.utc)
