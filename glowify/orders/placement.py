"""
Order placement.

``place_order`` runs every step in one transaction:

  1. load the product (row-locked)            -> NotFound
  2. compare stock with the quantity          -> InsufficientStock
  3. price the order
  4. validate the coupon against that price   -> InvalidCoupon(reason)
  5. insert the order as pending
  6. stock -= quantity, total_sales += quantity
  7. coupon used_count += 1 when one applied

Any failure rolls the whole transaction back, so a rejected order leaves
no order row, no stock change and no coupon redemption behind.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from glowify.core.errors import InsufficientStock, InvalidCoupon, NotFound
from glowify.data.database import atomic
from glowify.data.models import Order
from glowify.data.store import StorefrontStore
from glowify.pricing.calculator import calculate_price
from glowify.pricing.coupons import REASON_USAGE_LIMIT, validate_coupon
from glowify.schemas import PlaceOrderRequest
from glowify.utils.logger import get_logger, log_operation
from glowify.utils.redaction import create_order_summary, summary_json

logger = get_logger("orders")


def place_order(
    session: Session,
    request: PlaceOrderRequest,
    user_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Order:
    """
    Create a pending order for one product and apply its side effects.

    Args:
        session: Session whose transaction the whole placement runs in.
        request: Validated order request.
        user_id: Platform user id when the customer is signed in.
        now: Evaluation time for the coupon window (defaults to now).

    Returns:
        The persisted Order.

    Raises:
        NotFound: product missing or inactive.
        InsufficientStock: stock is below the requested quantity.
        InvalidCoupon: coupon rejected; ``reason`` says why.
    """
    summary = summary_json(create_order_summary(request.model_dump()))
    log_operation(logger, "orders", "place_order", request=summary)

    store = StorefrontStore(session)
    try:
        with atomic(session):
            product = store.get_product(request.product_id, lock=True)
            if product is None or not product.is_active:
                raise NotFound("Product", request.product_id)

            if product.stock < request.quantity:
                raise InsufficientStock(product.id, request.quantity, product.stock)

            price = calculate_price(product.price, request.quantity)

            coupon_id = None
            coupon_code = None
            if request.coupon_code:
                # Validate against the amount computed above, never a recomputed one
                validation = validate_coupon(store, request.coupon_code, price.original_amount, now=now, lock=True)
                if not validation.valid:
                    raise InvalidCoupon(validation.reason, validation.error, validation.code)
                coupon_id = validation.coupon_id
                coupon_code = validation.code
                price = calculate_price(product.price, request.quantity, validation.discount_amount)

            order = store.insert_order(Order(
                user_id=user_id,
                customer_name=request.customer.name,
                email=request.customer.email,
                phone=request.customer.phone,
                address=request.customer.address,
                product_id=product.id,
                product_name=product.name,
                quantity=request.quantity,
                original_amount=price.original_amount,
                discount_amount=price.discount_amount,
                total_amount=price.final_amount,
                coupon_code=coupon_code,
                status="pending",
                order_method=request.order_method,
            ))

            if not store.update_product_stock_and_sales(product.id, -request.quantity, request.quantity):
                raise InsufficientStock(product.id, request.quantity, product.stock)

            if coupon_id is not None and not store.increment_coupon_usage(coupon_id):
                raise InvalidCoupon(REASON_USAGE_LIMIT, "Coupon usage limit reached", coupon_code)
    except (NotFound, InsufficientStock, InvalidCoupon) as e:
        log_operation(logger, "orders", "place_order", result="rejected", code=e.code, error=e.message)
        raise

    log_operation(
        logger, "orders", "place_order",
        order_id=order.id, product_id=order.product_id, quantity=order.quantity,
        original_amount=order.original_amount, discount_amount=order.discount_amount,
        total_amount=order.total_amount, coupon_code=order.coupon_code, result="success",
    )
    return order
