"""
Product/coupon store used by order placement.

All methods run on the caller's session, so a sequence of calls shares one
transaction. Reads with ``lock=True`` take a row lock on Postgres
(SELECT ... FOR UPDATE); SQLite ignores the clause and relies on the
BEGIN IMMEDIATE transactions set up in ``glowify.data.database``.

Writes that guard an invariant are conditional and report whether a row
changed, so a lost race surfaces as ``False`` instead of a negative stock or
an over-redeemed coupon.
"""
from typing import Any, Dict, Optional, Union

from sqlalchemy import or_, select, update
from sqlalchemy.orm import Session
from sqlalchemy.orm.util import identity_key

from glowify.data.models import Coupon, Order, Product
from glowify.utils.logger import get_logger, log_operation

logger = get_logger("store")


def normalize_code(code: str) -> str:
    return code.strip().upper()


class StorefrontStore:
    """Data access for products, coupons and orders on one session."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def _expire(self, model, pk, *attrs: str) -> None:
        """Bulk UPDATEs bypass the identity map; drop stale column values."""
        obj = self.session.identity_map.get(identity_key(model, pk))
        if obj is not None:
            self.session.expire(obj, list(attrs))

    def get_product(self, product_id: int, lock: bool = False) -> Optional[Product]:
        stmt = select(Product).where(Product.id == product_id)
        if lock:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        return self.session.execute(stmt).scalar_one_or_none()

    def get_coupon(self, coupon_id: int, lock: bool = False) -> Optional[Coupon]:
        stmt = select(Coupon).where(Coupon.id == coupon_id)
        if lock:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        return self.session.execute(stmt).scalar_one_or_none()

    def get_coupon_by_code(self, code: str, lock: bool = False) -> Optional[Coupon]:
        stmt = select(Coupon).where(Coupon.code == normalize_code(code))
        if lock:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        return self.session.execute(stmt).scalar_one_or_none()

    def update_product_stock_and_sales(self, product_id: int, stock_delta: int, sales_delta: int) -> bool:
        """
        Apply deltas to stock and total_sales.
        Returns False (and changes nothing) when stock would go negative.
        """
        stmt = (
            update(Product)
            .where(Product.id == product_id, Product.stock + stock_delta >= 0)
            .values(stock=Product.stock + stock_delta, total_sales=Product.total_sales + sales_delta)
            .execution_options(synchronize_session=False)
        )
        changed = self.session.execute(stmt).rowcount == 1
        self._expire(Product, product_id, "stock", "total_sales")
        log_operation(
            logger, "store", "update_product_stock_and_sales",
            product_id=product_id, stock_delta=stock_delta, sales_delta=sales_delta,
            result="success" if changed else "rejected",
        )
        return changed

    def increment_coupon_usage(self, coupon_id: int) -> bool:
        """
        Add one redemption.
        Returns False when the coupon is missing or already at its usage limit.
        """
        stmt = (
            update(Coupon)
            .where(
                Coupon.id == coupon_id,
                or_(Coupon.usage_limit.is_(None), Coupon.used_count < Coupon.usage_limit),
            )
            .values(used_count=Coupon.used_count + 1)
            .execution_options(synchronize_session=False)
        )
        changed = self.session.execute(stmt).rowcount == 1
        self._expire(Coupon, coupon_id, "used_count")
        log_operation(
            logger, "store", "increment_coupon_usage",
            coupon_id=coupon_id, result="success" if changed else "rejected",
        )
        return changed

    def insert_order(self, record: Union[Order, Dict[str, Any]]) -> Order:
        order = record if isinstance(record, Order) else Order(**record)
        self.session.add(order)
        self.session.flush()
        return order
