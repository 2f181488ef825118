"""
Glowify - storefront backend for an anime poster shop

- Product catalog with stock and sales tracking
- Coupon validation and discount pricing
- Single-product orders handed off over WhatsApp or email
- Admin coupon, product and order management
"""

__version__ = '0.1.0'
