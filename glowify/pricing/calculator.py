"""
Order pricing.

Money is tracked as integers in minor currency units (paise). The only place
a fraction can appear is a percentage discount; it is rounded to a whole
minor unit with ROUND_HALF_UP so the same inputs always price the same way.
"""

from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Union

Number = Union[int, float, Decimal]


@dataclass(frozen=True)
class PriceBreakdown:
    unit_price: int
    quantity: int
    original_amount: int      # unit_price * quantity
    discount_amount: int      # 0 when no coupon applies
    final_amount: int         # max(0, original - discount)


def _require_amount(name: str, value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an integer amount in minor units, got {value!r}")
    if value < 0:
        raise ValueError(f"{name} must be non-negative, got {value}")


def percentage_discount(amount: int, percent: Number) -> int:
    """``amount * percent / 100`` rounded half-up to a whole minor unit."""
    _require_amount("amount", amount)
    exact = Decimal(amount) * Decimal(str(percent)) / Decimal(100)
    return int(exact.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def fixed_discount(amount: int, value: Number) -> int:
    """A flat discount never exceeds what the order is worth."""
    _require_amount("amount", amount)
    whole = int(Decimal(str(value)).quantize(Decimal(1), rounding=ROUND_HALF_UP))
    return max(0, min(whole, amount))


def apply_discount(amount: int, discount_amount: int) -> int:
    return max(0, amount - discount_amount)


def calculate_price(unit_price: int, quantity: int, discount_amount: int = 0) -> PriceBreakdown:
    """
    Price ``quantity`` units at ``unit_price``.

    Args:
        unit_price: Price of one unit in minor units.
        quantity: Positive number of units.
        discount_amount: Discount to subtract from the original amount.

    Returns:
        PriceBreakdown with the final amount floored at zero.
    """
    _require_amount("unit_price", unit_price)
    _require_amount("discount_amount", discount_amount)
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise ValueError(f"quantity must be a positive integer, got {quantity!r}")

    original = unit_price * quantity
    return PriceBreakdown(
        unit_price=unit_price,
        quantity=quantity,
        original_amount=original,
        discount_amount=discount_amount,
        final_amount=apply_discount(original, discount_amount),
    )
