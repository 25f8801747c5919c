"""Date helpers for provider payloads."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any


def to_date_string(value: Any) -> str | None:
    """Stringify a loose release date, treating empty values as missing."""
    if not value:
        return None
    return str(value)


def epoch_to_date_string(value: Any) -> str | None:
    """Convert Unix epoch seconds to a UTC ``YYYY-MM-DD`` string."""
    if not value:
        return None
    try:
        stamp = datetime.fromtimestamp(int(value), tz=timezone.utc)
    except (TypeError, ValueError, OverflowError, OSError):
        return None
    return stamp.date().isoformat()
