from __future__ import annotations

from typing import Any, Optional

from ..core.exceptions import ValidationError


def require_id(value: Any, field_name: str) -> int:
    """Coerce a positive integer identifier or raise ValidationError."""

    parsed = coerce_positive_int(value)
    if parsed is None:
        raise ValidationError(f"Invalid {field_name}")
    return parsed


def coerce_positive_int(value: Any) -> Optional[int]:
    """Return value as a positive int, or None when it is not one.

    Integer strings ("3") are accepted; bools, floats with a fraction and
    anything below 1 are not.
    """

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 1 else None
    if isinstance(value, float):
        return int(value) if value.is_integer() and value >= 1 else None
    if isinstance(value, str):
        text = value.strip()
        if text.isdigit() and int(text) >= 1:
            return int(text)
    return None


def optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def require_max_length(value: Optional[str], field_name: str, max_length: int) -> Optional[str]:
    if value is not None and len(value) > max_length:
        raise ValidationError(f"{field_name} must be at most {max_length} characters")
    return value
