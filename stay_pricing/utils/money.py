from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Any

from stay_pricing.core.errors import InvalidAmount

WHOLE_UNIT = Decimal("1")


def to_money(value: Any, field: str = "amount") -> Decimal:
    """Convert an upstream value to Decimal, rejecting negatives and NaN"""
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidAmount(f"{field} is not a number: {value!r}")
    if amount.is_nan() or amount.is_infinite():
        raise InvalidAmount(f"{field} is not a finite number: {value!r}")
    if amount < 0:
        raise InvalidAmount(f"{field} must not be negative: {value!r}")
    return amount


def round_money(value: Decimal) -> Decimal:
    """Round to whole currency units, halves away from zero"""
    return value.quantize(WHOLE_UNIT, rounding=ROUND_HALF_UP)
