from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any


# Numeric(10, 2) upper bound
MAX_MONEY = Decimal("99999999.99")
CENT = Decimal("0.01")

# SQL INTEGER upper bound
MAX_INT = 2_147_483_647


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate SKU)."""


class InsufficientPaymentError(ValidationError):
    """Payment received does not cover the sale total."""


def quantize_money(value: Decimal) -> Decimal:
    """Round to whole cents, half-up."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def coerce_int(value: Any, field: str) -> int:
    """
    Strict integer coercion for JSON input.

    Rejects bools, floats, decimals and scientific notation so that
    "12.5" or 1e3 never silently become a quantity.
    """
    if isinstance(value, int) and not isinstance(value, bool):
        number = value
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{field} must be an integer")
        if 'e' in stripped.lower():
            raise ValidationError(f"{field} must be a plain integer (scientific notation not allowed)")
        if '.' in stripped:
            raise ValidationError(f"{field} must be an integer (no decimals)")
        try:
            number = int(stripped)
        except ValueError:
            raise ValidationError(f"{field} must be an integer")
    elif isinstance(value, float):
        raise ValidationError(f"{field} must be an integer, not a decimal")
    else:
        raise ValidationError(f"{field} must be an integer")

    check_int_range(number, field)
    return number


def check_int_range(value: int, field: str) -> None:
    """Every integer column is a 32-bit INTEGER."""
    if not -MAX_INT - 1 <= value <= MAX_INT:
        raise ValidationError(f"{field} must be between {-MAX_INT - 1} and {MAX_INT}")


def coerce_money(value: Any, field: str) -> Decimal:
    """
    Convert a JSON number/string to a cent-precision Decimal.

    Sub-cent input (10.005) is rejected rather than rounded.

    Floats go through str() first so 19.99 stays 19.99 instead of
    picking up binary representation noise.
    """
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, (int, float)):
        amount = Decimal(str(value))
    elif isinstance(value, str):
        try:
            amount = Decimal(value.strip())
        except InvalidOperation:
            raise ValidationError(f"{field} must be a number")
    else:
        raise ValidationError(f"{field} must be a number")

    if not amount.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    if abs(amount) > MAX_MONEY:
        raise ValidationError(f"{field} cannot exceed {MAX_MONEY}")
    if amount != amount.quantize(CENT):
        raise ValidationError(f"{field} must have at most 2 decimal places")

    return quantize_money(amount)


def coerce_text(value: Any, field: str, *, max_length: int | None = None, allow_blank: bool = False) -> str:
    if value is None:
        raise ValidationError(f"{field} cannot be null")
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")
    text = value.strip()
    if not text and not allow_blank:
        raise ValidationError(f"{field} cannot be blank")
    if max_length and len(text) > max_length:
        raise ValidationError(f"{field} exceeds max length {max_length}")
    return text


def coerce_optional_text(value: Any, field: str, *, max_length: int | None = None) -> str | None:
    if value is None:
        return None
    text = coerce_text(value, field, max_length=max_length, allow_blank=True)
    return text or None


def require_fields(payload: Any, required: set[str]) -> dict:
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    missing = sorted(f for f in required if f not in payload)
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")
    return payload


def reject_unknown_fields(payload: dict, allowed: set[str]) -> None:
    for k in payload.keys():
        if k not in allowed:
            raise ValidationError(f"Field not allowed: {k}")
