from __future__ import annotations

from enum import Enum
from typing import Any, Optional, TypeVar

from ..core.exceptions import ValidationError

E = TypeVar("E", bound=Enum)


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"Please provide {field_name}")
    return value.strip()


def require_int(value: Any, field_name: str) -> int:
    try:
        result = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Please provide a valid {field_name}")
    if result <= 0:
        raise ValidationError(f"Please provide a valid {field_name}")
    return result


def optional_enum(enum_cls: type[E], value: Optional[str], field_name: str) -> Optional[E]:
    if value is None or value == "":
        return None
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(f"Invalid {field_name}: {value!r} (allowed: {allowed})")


def optional_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None
