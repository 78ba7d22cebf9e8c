from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any

from ..core.enums import Meal
from ..core.exceptions import ValidationError


def require_non_empty(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def optional_text(value: Any, field_name: str) -> str:
    """None or a string; returns the stripped text ("" for None)."""
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be text")
    return value.strip()


def require_bool(value: Any, field_name: str) -> bool:
    if not isinstance(value, bool):
        raise ValidationError(f"{field_name} must be true or false")
    return value


def require_meal(value: Any) -> Meal:
    try:
        return Meal(value)
    except ValueError:
        raise ValidationError("Invalid meal type (expected 'lunch' or 'dinner')")


def _is_real_number(value: Any) -> bool:
    # bool is an int subclass; "true" is not a subscription amount.
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


def _to_decimal(value: Any) -> Decimal:
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def _whole_cents(amount: Decimal) -> bool:
    # Money columns are DECIMAL(10, 2).
    cents = amount * 100
    return cents == cents.to_integral_value()


def require_positive_number(value: Any, field_name: str) -> Decimal:
    """Accept only numeric values (no strings) strictly greater than zero."""
    if not _is_real_number(value):
        raise ValidationError(f"{field_name} must be a positive number")
    amount = _to_decimal(value)
    if not amount.is_finite() or amount <= 0 or not _whole_cents(amount):
        raise ValidationError(f"{field_name} must be a positive number")
    return amount


def parse_positive_amount(value: Any, field_name: str) -> Decimal:
    """Like require_positive_number, but numeric strings such as "250.50" are parsed."""
    if isinstance(value, str):
        try:
            value = Decimal(value.strip())
        except InvalidOperation:
            raise ValidationError(f"Please provide a valid {field_name}")
    if not _is_real_number(value):
        raise ValidationError(f"Please provide a valid {field_name}")
    amount = _to_decimal(value)
    if not amount.is_finite() or amount <= 0 or not _whole_cents(amount):
        raise ValidationError(f"Please provide a valid {field_name}")
    return amount


def require_positive_int(value: Any, field_name: str) -> int:
    if not _is_real_number(value):
        raise ValidationError(f"{field_name} must be a positive whole number")
    number = _to_decimal(value)
    if not number.is_finite() or number <= 0 or number != number.to_integral_value():
        raise ValidationError(f"{field_name} must be a positive whole number")
    return int(number)


def require_non_negative_int(value: Any, field_name: str) -> int:
    if not _is_real_number(value):
        raise ValidationError(f"{field_name} must be a whole number")
    number = _to_decimal(value)
    if not number.is_finite() or number < 0 or number != number.to_integral_value():
        raise ValidationError(f"{field_name} must be a whole number >= 0")
    return int(number)


def parse_member_id(value: Any) -> int:
    if isinstance(value, bool):
        raise ValidationError("Invalid member id")
    try:
        member_id = int(value)
    except (TypeError, ValueError):
        raise ValidationError("Invalid member id")
    if member_id <= 0:
        raise ValidationError("Invalid member id")
    return member_id
