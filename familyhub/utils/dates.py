"""Timestamp formatting for API responses."""

from datetime import datetime, timezone
from typing import Optional


def to_iso(value: Optional[datetime]) -> Optional[str]:
    """ISO 8601 with an explicit UTC offset.

    SQLite returns naive datetimes; everything is stored in UTC.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()
