"""
Coupon / discount code validation.

Checks run in a fixed order and stop at the first failure, each with its own
reason string:

  invalid code         no coupon with that code
  not active           switched off by an admin
  not yet valid        before valid_from
  expired              after valid_until
  usage limit reached  used_count >= usage_limit

The validity window is inclusive at both ends. Validation never changes a
coupon; redemption is counted by order placement.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from glowify.data.models import Coupon, as_utc, utcnow
from glowify.data.store import StorefrontStore, normalize_code
from glowify.pricing.calculator import apply_discount, fixed_discount, percentage_discount

REASON_INVALID_CODE = "invalid code"
REASON_NOT_ACTIVE = "not active"
REASON_NOT_YET_VALID = "not yet valid"
REASON_EXPIRED = "expired"
REASON_USAGE_LIMIT = "usage limit reached"

_MESSAGES = {
    REASON_INVALID_CODE: "Invalid coupon code. Check spelling and try again.",
    REASON_NOT_ACTIVE: "Coupon is not active",
    REASON_NOT_YET_VALID: "Coupon is not yet valid",
    REASON_EXPIRED: "Coupon has expired",
    REASON_USAGE_LIMIT: "Coupon usage limit reached",
}


@dataclass
class CouponValidation:
    valid: bool
    code: str
    reason: Optional[str] = None          # machine reason when invalid
    error: Optional[str] = None           # human message when invalid
    discount_type: Optional[str] = None   # "percentage" | "fixed"
    discount_value: Optional[float] = None
    discount_amount: Optional[int] = None
    final_amount: Optional[int] = None
    coupon_id: Optional[int] = None


def _invalid(code: str, reason: str, coupon: Optional[Coupon] = None) -> CouponValidation:
    return CouponValidation(
        valid=False,
        code=code,
        reason=reason,
        error=_MESSAGES[reason],
        discount_type=coupon.discount_type if coupon else None,
        discount_value=coupon.discount_value if coupon else None,
        coupon_id=coupon.id if coupon else None,
    )


def compute_discount(coupon: Coupon, order_amount: int) -> int:
    if coupon.discount_type == "percentage":
        return percentage_discount(order_amount, coupon.discount_value)
    return fixed_discount(order_amount, coupon.discount_value)


def check_coupon(coupon: Optional[Coupon], code: str, order_amount: int, now: Optional[datetime] = None) -> CouponValidation:
    """Validate an already-loaded coupon row against ``order_amount``."""
    normalized = normalize_code(code)
    if coupon is None:
        return _invalid(normalized, REASON_INVALID_CODE)

    if not coupon.is_active:
        return _invalid(normalized, REASON_NOT_ACTIVE, coupon)

    now = as_utc(now or utcnow())
    if now < as_utc(coupon.valid_from):
        return _invalid(normalized, REASON_NOT_YET_VALID, coupon)
    if now > as_utc(coupon.valid_until):
        return _invalid(normalized, REASON_EXPIRED, coupon)

    if coupon.usage_limit is not None and coupon.used_count >= coupon.usage_limit:
        return _invalid(normalized, REASON_USAGE_LIMIT, coupon)

    discount = compute_discount(coupon, order_amount)
    return CouponValidation(
        valid=True,
        code=normalized,
        discount_type=coupon.discount_type,
        discount_value=coupon.discount_value,
        discount_amount=discount,
        final_amount=apply_discount(order_amount, discount),
        coupon_id=coupon.id,
    )


def validate_coupon(
    store: StorefrontStore,
    code: str,
    order_amount: int,
    now: Optional[datetime] = None,
    lock: bool = False,
) -> CouponValidation:
    """
    Validate a coupon code and compute the discount amount.

    Args:
        store: Store bound to the caller's session.
        code: The coupon code entered by the user (case-insensitive).
        order_amount: Pre-discount order amount in minor units.
        now: Evaluation time (defaults to the current UTC time).
        lock: Lock the coupon row for the rest of the transaction.

    Returns:
        CouponValidation; on success discount_amount/final_amount are set.
    """
    if order_amount < 0:
        raise ValueError(f"order_amount must be non-negative, got {order_amount}")
    coupon = store.get_coupon_by_code(code, lock=lock)
    return check_coupon(coupon, code, order_amount, now)
