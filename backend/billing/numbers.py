# Overview: Fixed-point helpers shared by models, validation and services.

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

MONEY_PLACES = Decimal("0.01")
QUANTITY_PLACES = Decimal("0.001")


def to_decimal(value: Any) -> Decimal:
    """
    Convert JSON/form input to Decimal without going through binary floats.

    Raises InvalidOperation (an ArithmeticError) for non-numeric input.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise InvalidOperation(f"boolean is not a number: {value!r}")
    if isinstance(value, (int, float)):
        return Decimal(str(value))
    if isinstance(value, str) and value.strip():
        return Decimal(value.strip())
    raise InvalidOperation(f"not a number: {value!r}")


def to_money(value: Any) -> Decimal:
    return to_decimal(value).quantize(MONEY_PLACES, rounding=ROUND_HALF_UP)


def to_quantity(value: Any) -> Decimal:
    return to_decimal(value).quantize(QUANTITY_PLACES, rounding=ROUND_HALF_UP)


def as_number(value: Any) -> float | int | None:
    """JSON-friendly rendering: whole values as int, everything else as float."""
    if value is None:
        return None
    value = to_decimal(value)
    if value == value.to_integral_value():
        return int(value)
    return float(value)
