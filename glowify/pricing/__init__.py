"""Pricing: order amounts, coupon validation and coupon administration."""

from glowify.pricing.calculator import PriceBreakdown, calculate_price, fixed_discount, percentage_discount
from glowify.pricing.coupons import CouponValidation, validate_coupon

__all__ = [
    'PriceBreakdown',
    'calculate_price',
    'fixed_discount',
    'percentage_discount',
    'CouponValidation',
    'validate_coupon',
]
