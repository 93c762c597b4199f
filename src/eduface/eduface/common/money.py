from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Union

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value) -> Decimal:
    """Parse ``value`` into a finite Decimal rounded to cents.

    Floats go through ``str`` so 18.21 stays 18.21 instead of its binary
    expansion. Raises ValueError for anything that is not a finite number.
    """

    if isinstance(value, bool) or value is None:
        raise ValueError(f"not an amount: {value!r}")
    if isinstance(value, Decimal):
        amount = value
    else:
        try:
            amount = Decimal(str(value).strip())
        except InvalidOperation:
            raise ValueError(f"not an amount: {value!r}")
    if not amount.is_finite():
        raise ValueError(f"not a finite amount: {value!r}")
    try:
        return amount.quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise ValueError(f"amount out of range: {value!r}")


def to_wire(amount) -> Union[int, float]:
    """JSON-friendly number: whole amounts as int, the rest as float."""

    amount = to_money(amount)
    if amount == amount.to_integral_value():
        return int(amount)
    return float(amount)
