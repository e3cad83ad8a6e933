"""Money helpers for GlowMart.

All amounts are Indian Rupees stored as ``Numeric(12, 2)`` and handled as
``Decimal`` in code.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Union

Number = Union[Decimal, int, float, str]

PAISE = Decimal("0.01")


def to_money(value: Number) -> Decimal:
    """Quantize to 2 decimal places (round half-up)."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(PAISE, rounding=ROUND_HALF_UP)
