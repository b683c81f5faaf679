from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, Optional


def parse_instant(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 instant into a naive UTC datetime.

    Accepts `datetime`, `date` (midnight) and strings such as
    `2024-01-01T10:00:00Z` or `2024-01-01 10:00`. Offset-aware values are
    converted to UTC and stripped of tzinfo; naive values are taken as-is.
    Returns None when the value is missing or not a valid instant.
    """

    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def format_instant(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def now_utc() -> datetime:
    """Current time as naive UTC. Only request boundaries call it."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
