"""Decimal helpers for monetary amounts."""

from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Union

ZERO = Decimal("0")
CENT = Decimal("0.01")

Number = Union[Decimal, int, float, str]


def to_decimal(value: Optional[Number]) -> Decimal:
    """Coerce a value to Decimal; floats go through str to avoid binary noise."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def quantize_money(value: Optional[Number]) -> Decimal:
    """Round to cents, half up."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)
