"""
Order placement tests.

Scenario tests for pricing and side effects, rollback on every failure path,
and concurrency: parallel orders must never oversell stock or over-redeem a
coupon.
"""

from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta

import pytest
from sqlalchemy import BigInteger, func, select

from glowify.core.errors import InsufficientStock, InvalidCoupon, NotFound
from glowify.data.models import Coupon, Order, Product, utcnow
from glowify.orders.placement import place_order
from glowify.schemas import PlaceOrderRequest


def _order_request(product_id, quantity=1, coupon_code=None, order_method="whatsapp"):
    return PlaceOrderRequest(
        customer={
            "name": "Asha Patel",
            "email": "asha@example.com",
            "phone": "+91 98765 43210",
            "address": "12 MG Road, Pune",
        },
        product_id=product_id,
        quantity=quantity,
        coupon_code=coupon_code,
        order_method=order_method,
    )


def _order_count(session):
    count = session.execute(select(func.count()).select_from(Order)).scalar_one()
    session.commit()
    return count


# ============================================================================
# Scenarios
# ============================================================================

class TestPlaceOrder:
    def test_order_without_coupon(self, session, make_product, reload):
        product = make_product(price=500, stock=10)
        order = place_order(session, _order_request(product.id, quantity=2))

        assert order.original_amount == 1000
        assert order.discount_amount == 0
        assert order.total_amount == 1000
        assert order.status == "pending"
        assert order.coupon_code is None
        assert order.product_name == product.name

        fresh = reload(Product, product.id)
        assert fresh.stock == 8
        assert fresh.total_sales == 2

    def test_percentage_coupon_applied(self, session, make_product, make_coupon, reload):
        product = make_product(price=500, stock=10)
        coupon = make_coupon(code="SAVE20", discount_type="percentage", discount_value=20, usage_limit=5)

        order = place_order(session, _order_request(product.id, quantity=2, coupon_code="save20"))

        assert order.original_amount == 1000
        assert order.discount_amount == 200
        assert order.total_amount == 800
        assert order.coupon_code == "SAVE20"
        assert reload(Coupon, coupon.id).used_count == 1

    def test_fixed_coupon_larger_than_order(self, session, make_product, make_coupon):
        product = make_product(price=50, stock=10)
        make_coupon(code="FLAT100", discount_type="fixed", discount_value=100)

        order = place_order(session, _order_request(product.id, coupon_code="FLAT100"))

        assert order.discount_amount == 50
        assert order.total_amount == 0

    def test_records_user_and_method(self, session, make_product):
        product = make_product()
        order = place_order(session, _order_request(product.id, order_method="email"), user_id="user-42")
        assert order.user_id == "user-42"
        assert order.order_method == "email"

    def test_whole_stock_can_be_bought(self, session, make_product, reload):
        product = make_product(stock=3)
        place_order(session, _order_request(product.id, quantity=3))
        assert reload(Product, product.id).stock == 0

    def test_amounts_beyond_32_bits(self, session, make_product):
        # 5,00,000 rupees x 500 units = 25,00,00,00,000 paise
        product = make_product(price=50_000_000, stock=500)
        order = place_order(session, _order_request(product.id, quantity=500))
        session.expire_all()
        fresh = session.get(Order, order.id)
        session.commit()
        assert fresh.original_amount == 25_000_000_000
        assert fresh.total_amount == 25_000_000_000
        for column in ("original_amount", "discount_amount", "total_amount"):
            assert isinstance(Order.__table__.c[column].type, BigInteger)


# ============================================================================
# Failures leave no trace
# ============================================================================

class TestPlaceOrderFailures:
    def test_unknown_product(self, session):
        with pytest.raises(NotFound):
            place_order(session, _order_request(9999))
        assert _order_count(session) == 0

    def test_inactive_product_not_orderable(self, session, make_product, reload):
        product = make_product(is_active=False)
        with pytest.raises(NotFound):
            place_order(session, _order_request(product.id))
        assert reload(Product, product.id).stock == 10

    def test_insufficient_stock(self, session, make_product, reload):
        product = make_product(price=500, stock=3)
        with pytest.raises(InsufficientStock) as exc_info:
            place_order(session, _order_request(product.id, quantity=4))

        assert exc_info.value.available == 3
        fresh = reload(Product, product.id)
        assert fresh.stock == 3
        assert fresh.total_sales == 0
        assert _order_count(session) == 0

    def test_expired_coupon(self, session, make_product, make_coupon, reload):
        product = make_product(stock=10)
        now = utcnow()
        coupon = make_coupon(
            code="OLD10", valid_from=now - timedelta(days=30), valid_until=now - timedelta(days=1),
        )
        with pytest.raises(InvalidCoupon) as exc_info:
            place_order(session, _order_request(product.id, coupon_code="OLD10"))

        assert exc_info.value.reason == "expired"
        assert reload(Product, product.id).stock == 10
        assert reload(Coupon, coupon.id).used_count == 0
        assert _order_count(session) == 0

    def test_unknown_coupon(self, session, make_product, reload):
        product = make_product(stock=10)
        with pytest.raises(InvalidCoupon) as exc_info:
            place_order(session, _order_request(product.id, coupon_code="GHOST"))
        assert exc_info.value.reason == "invalid code"
        assert reload(Product, product.id).total_sales == 0

    def test_exhausted_coupon(self, session, make_product, make_coupon):
        product = make_product(stock=10)
        make_coupon(code="ONCE", usage_limit=1, used_count=1)
        with pytest.raises(InvalidCoupon) as exc_info:
            place_order(session, _order_request(product.id, coupon_code="ONCE"))
        assert exc_info.value.reason == "usage limit reached"

    def test_last_redemption_then_limit(self, session, make_product, make_coupon, reload):
        product = make_product(stock=10)
        coupon = make_coupon(code="TWICE", usage_limit=2)

        place_order(session, _order_request(product.id, coupon_code="TWICE"))
        place_order(session, _order_request(product.id, coupon_code="TWICE"))
        with pytest.raises(InvalidCoupon) as exc_info:
            place_order(session, _order_request(product.id, coupon_code="TWICE"))

        assert exc_info.value.reason == "usage limit reached"
        assert reload(Coupon, coupon.id).used_count == 2
        assert reload(Product, product.id).stock == 8

    def test_invalid_quantity_rejected_at_boundary(self):
        with pytest.raises(ValueError):
            _order_request(1, quantity=0)


# ============================================================================
# Concurrency
# ============================================================================

def _attempt(session_factory, request):
    db = session_factory()
    try:
        place_order(db, request)
        return "ok"
    except InsufficientStock:
        return "out_of_stock"
    except InvalidCoupon as e:
        return e.reason
    finally:
        db.close()


class TestConcurrentPlacement:
    def test_stock_never_oversold(self, session, session_factory, make_product, reload):
        product = make_product(stock=5)
        request = _order_request(product.id, quantity=1)

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(lambda _: _attempt(session_factory, request), range(12)))

        assert results.count("ok") == 5
        assert results.count("out_of_stock") == 7
        fresh = reload(Product, product.id)
        assert fresh.stock == 0
        assert fresh.total_sales == 5
        assert _order_count(session) == 5

    def test_multi_unit_orders_respect_stock(self, session, session_factory, make_product, reload):
        product = make_product(stock=7)
        request = _order_request(product.id, quantity=2)

        with ThreadPoolExecutor(max_workers=6) as pool:
            results = list(pool.map(lambda _: _attempt(session_factory, request), range(6)))

        assert results.count("ok") == 3
        assert reload(Product, product.id).stock == 1

    def test_coupon_never_over_redeemed(self, session, session_factory, make_product, make_coupon, reload):
        product = make_product(stock=100)
        coupon = make_coupon(code="FIRST3", usage_limit=3)
        request = _order_request(product.id, coupon_code="FIRST3")

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(lambda _: _attempt(session_factory, request), range(10)))

        assert results.count("ok") == 3
        assert results.count("usage limit reached") == 7
        assert reload(Coupon, coupon.id).used_count == 3
        fresh = reload(Product, product.id)
        assert fresh.stock == 97
        assert fresh.total_sales == 3
