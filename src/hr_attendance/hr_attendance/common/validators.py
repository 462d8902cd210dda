from __future__ import annotations

from typing import Any, Optional

from ..core.exceptions import ValidationError


def require_non_empty(value: Optional[str], field_name: str) -> str:
    if not value or not str(value).strip():
        raise ValidationError(f"{field_name} is required")
    return str(value).strip()


def require_int_id(value: Any, field_name: str) -> int:
    if value is None or value == "" or isinstance(value, bool):
        raise ValidationError(f"{field_name} is required")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {field_name} format. {field_name} must be a valid number.")


def require_hours(value: Any, field_name: str, *, allow_zero: bool = True) -> float:
    """Parse an hour amount; negatives (and zero unless allowed) are rejected."""
    if value is None or value == "":
        raise ValidationError(f"{field_name} is required")
    try:
        hours = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {field_name} format")
    if hours < 0:
        raise ValidationError(f"{field_name} cannot be negative")
    if not allow_zero and hours == 0:
        raise ValidationError(f"{field_name} must be greater than 0")
    return hours


def hours_to_minutes(hours: float) -> int:
    return int(hours * 60 // 1)


def optional_flag(value: Any, field_name: str) -> Optional[bool]:
    """Query-string friendly tri-state: missing means no filter."""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in ("1", "true", "yes"):
        return True
    if text in ("0", "false", "no"):
        return False
    raise ValidationError(f"{field_name} must be true or false")
