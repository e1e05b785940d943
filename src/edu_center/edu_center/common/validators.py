from __future__ import annotations

from datetime import date
from typing import Any, Optional

from ..core.exceptions import ValidationError


def require_non_empty(value: Optional[str], field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_min_length(value: Optional[str], field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters")
    return value


def parse_id(value: Any) -> int:
    """Record ids travel as strings in URLs and JSON; accept positive ints only."""
    if isinstance(value, bool):
        raise ValidationError("Invalid id format")
    if isinstance(value, int):
        result = value
    else:
        text = str(value or "").strip()
        if not text.isdigit():
            raise ValidationError("Invalid id format")
        result = int(text)
    if result <= 0:
        raise ValidationError("Invalid id format")
    return result


def optional_id(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    return parse_id(value)


def optional_number(value: Any, field_name: str) -> Optional[float]:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number")
    return int(number) if number.is_integer() else number


def require_bool(value: Any, field_name: str) -> bool:
    if not isinstance(value, bool):
        raise ValidationError(f"{field_name} must be true or false")
    return value


def require_iso_date(value: Any, field_name: str) -> str:
    """Validate a YYYY-MM-DD string and return it unchanged."""
    text = require_non_empty(value, field_name)
    try:
        date.fromisoformat(text[:10])
    except ValueError:
        raise ValidationError(f"{field_name} must be a date (YYYY-MM-DD)")
    return text


def optional_text(value: Any, field_name: str) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be text")
    return value.strip()

