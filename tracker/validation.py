"""Field-level validation and input sanitizing shared by every facade.

Each check raises ``ValidationFailed(field, message)`` on bad input and
returns the normalized value otherwise.
"""

from __future__ import annotations

import re
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, TypeVar

from tracker.clock import parse_iso
from tracker.errors import ValidationFailed

E = TypeVar("E", bound=Enum)

DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_CONTROL_RE = re.compile(r"[\x00-\x1f\x7f]")
_SPACE_RE = re.compile(r"\s+")


# ── Sanitizing ────────────────────────────────────────────────


def sanitize_string(value: str) -> str:
    """Trim, drop control characters and collapse runs of whitespace."""
    return _SPACE_RE.sub(" ", _CONTROL_RE.sub("", value.strip()))


def sanitize_fields(params: dict[str, Any]) -> dict[str, Any]:
    """Return a copy with every string value sanitized."""
    return {k: sanitize_string(v) if isinstance(v, str) else v for k, v in params.items()}


# ── Strings ───────────────────────────────────────────────────


def require_string(field: str, value: Any, label: str | None = None, max_length: int | None = None) -> str:
    label = label or field
    if not isinstance(value, str) or not value.strip():
        raise ValidationFailed(field, f"{label} is required")
    if max_length is not None and len(value) > max_length:
        raise ValidationFailed(field, f"{label} must be under {max_length} characters")
    return value.strip()


def check_max_length(field: str, value: str | None, max_length: int, label: str | None = None) -> None:
    if value and len(value) > max_length:
        raise ValidationFailed(field, f"{label or field} must be under {max_length} characters")


# ── Enums ─────────────────────────────────────────────────────


def require_enum(field: str, value: Any, enum_cls: type[E], label: str | None = None) -> E:
    """Coerce *value* to a member of *enum_cls* or fail."""
    label = label or field
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationFailed(field, f"{label} is required")
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        raise ValidationFailed(field, f"Invalid {label}: {value!r}") from None


# ── Numbers ───────────────────────────────────────────────────


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def check_int_range(field: str, value: Any, low: int, high: int, label: str | None = None) -> int:
    label = label or field
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValidationFailed(field, f"{label} must be an integer")
    if value < low or value > high:
        raise ValidationFailed(field, f"{label} must be between {low} and {high}")
    return value


def check_non_negative(field: str, value: Any, label: str | None = None) -> None:
    if value is None:
        return
    if not _is_number(value):
        raise ValidationFailed(field, f"{label or field} must be numeric")
    if value < 0:
        raise ValidationFailed(field, f"{label or field} cannot be negative")


def check_positive(field: str, value: Any, label: str | None = None) -> None:
    if not _is_number(value) or value <= 0:
        raise ValidationFailed(field, f"{label or field} must be greater than 0")


# ── Dates ─────────────────────────────────────────────────────


def parse_date(field: str, value: Any) -> date:
    """Parse a 'YYYY-MM-DD' calendar date."""
    if isinstance(value, datetime):
        return value.astimezone(timezone.utc).date() if value.tzinfo else value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        raise ValidationFailed(field, "Date is required")
    if not DATE_RE.match(value):
        raise ValidationFailed(field, "Date must be in YYYY-MM-DD format")
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise ValidationFailed(field, f"Invalid date: {value}") from None


def parse_timestamp(field: str, value: Any) -> datetime:
    """Accept an aware/naive datetime or an ISO string; return aware UTC."""
    if isinstance(value, datetime):
        return value.astimezone(timezone.utc) if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if not isinstance(value, str) or not value.strip():
        raise ValidationFailed(field, "Timestamp is required")
    try:
        return parse_iso(value)
    except ValueError:
        raise ValidationFailed(field, f"Invalid timestamp: {value}") from None


def parse_reference(field: str, value: Any) -> datetime:
    """Reference instant for period windows: a date, 'YYYY-MM-DD', or a timestamp."""
    if isinstance(value, datetime):
        return parse_timestamp(field, value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, str) and DATE_RE.match(value.strip()):
        d = parse_date(field, value.strip())
        return datetime(d.year, d.month, d.day, tzinfo=timezone.utc)
    return parse_timestamp(field, value)
