"""
SQLAlchemy database models.
These are the authoritative source of truth for storefront data.

All money columns hold integer minor units (paise for INR).
Timestamps are stored in UTC.
"""

from datetime import datetime, timezone

from sqlalchemy import (
    BigInteger, Boolean, CheckConstraint, Column, DateTime, Float, ForeignKey, Index, Integer, String, Text,
)

from glowify.data.database import Base

ORDER_STATUSES = ("pending", "confirmed", "completed")
ORDER_METHODS = ("whatsapp", "email")
DISCOUNT_TYPES = ("percentage", "fixed")


def _one_of(column: str, values) -> str:
    return "{} IN ({})".format(column, ", ".join(f"'{v}'" for v in values))


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; they were written as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class Product(Base):
    """
    Poster catalog entry.
    stock and total_sales are only changed by order placement;
    rating fields are maintained by review submission.
    """
    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
        CheckConstraint("total_sales >= 0", name="ck_products_sales_non_negative"),
        CheckConstraint("price >= 0", name="ck_products_price_non_negative"),
        Index("ix_products_anime_name", "anime_name"),
        Index("ix_products_total_sales", "total_sales"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    anime_name = Column(String(255), nullable=False, default="")
    price = Column(Integer, nullable=False)
    stock = Column(Integer, nullable=False, default=0)
    total_sales = Column(Integer, nullable=False, default=0)
    average_rating = Column(Float, nullable=False, default=0.0)
    review_count = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)


class Coupon(Base):
    """
    Discount code. ``code`` is stored uppercased and is unique.
    usage_limit of None means unlimited redemptions.
    """
    __tablename__ = "coupons"
    __table_args__ = (
        CheckConstraint("used_count >= 0", name="ck_coupons_used_count_non_negative"),
        CheckConstraint("discount_value >= 0", name="ck_coupons_value_non_negative"),
        CheckConstraint(_one_of("discount_type", DISCOUNT_TYPES), name="ck_coupons_discount_type"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(String(64), nullable=False, unique=True, index=True)
    discount_type = Column(String(16), nullable=False)
    discount_value = Column(Float, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    valid_from = Column(DateTime(timezone=True), nullable=False)
    valid_until = Column(DateTime(timezone=True), nullable=False)
    usage_limit = Column(Integer, nullable=True)
    used_count = Column(Integer, nullable=False, default=0)
    description = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class Order(Base):
    """
    One checkout of a single product.
    Product name and amounts are snapshots taken at placement time.
    """
    __tablename__ = "orders"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_orders_quantity_positive"),
        CheckConstraint("discount_amount >= 0", name="ck_orders_discount_non_negative"),
        CheckConstraint("total_amount >= 0", name="ck_orders_total_non_negative"),
        CheckConstraint(_one_of("status", ORDER_STATUSES), name="ck_orders_status"),
        CheckConstraint(_one_of("order_method", ORDER_METHODS), name="ck_orders_method"),
        Index("ix_orders_status", "status"),
        Index("ix_orders_user_status", "user_id", "status"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(128), nullable=True, index=True)

    customer_name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(64), nullable=False)
    address = Column(Text, nullable=False)

    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    product_name = Column(String(255), nullable=False)
    quantity = Column(Integer, nullable=False)

    original_amount = Column(BigInteger, nullable=False)
    discount_amount = Column(BigInteger, nullable=False, default=0)
    total_amount = Column(BigInteger, nullable=False)
    coupon_code = Column(String(64), nullable=True)

    status = Column(String(16), nullable=False, default="pending")
    order_method = Column(String(16), nullable=False)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)


class AdminUser(Base):
    """Marks a platform user id as a storefront administrator."""
    __tablename__ = "admin_users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(128), nullable=False, unique=True, index=True)
    is_admin = Column(Boolean, nullable=False, default=True)
