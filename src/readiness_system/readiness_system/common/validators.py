from __future__ import annotations

from enum import Enum
from fractions import Fraction
from typing import Optional, Type, TypeVar, Union

from ..core.exceptions import ValidationError

E = TypeVar("E", bound=Enum)


def require_non_empty(value: Optional[str], field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_max_length(value: Optional[str], field_name: str, max_len: int) -> Optional[str]:
    if value is not None and len(value) > max_len:
        raise ValidationError(f"{field_name} must be at most {max_len} characters")
    return value


def require_int_in_range(value: object, field_name: str, low: int, high: int) -> int:
    # bool is an int subclass; a True metric is a client bug, not a 1.
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{field_name} must be an integer")
    if value < low or value > high:
        raise ValidationError(f"{field_name} must be between {low} and {high}")
    return value


def require_enum(value: object, enum_cls: Type[E], field_name: str) -> E:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value or "").strip().upper())
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(f"{field_name} must be one of: {allowed}")


def round_half_up(value: Union[Fraction, int]) -> int:
    """Round a non-negative rational half away from zero (0.5 -> 1).

    Python's round() is banker's rounding, which would turn 72.5 into 72.
    """
    return int(Fraction(value) + Fraction(1, 2)) if value >= 0 else -int(-Fraction(value) + Fraction(1, 2))
