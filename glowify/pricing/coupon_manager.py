"""
Admin-side coupon lifecycle: create, toggle, list.

Coupons are never deleted; switching one off is done with
``toggle_coupon_active``.
"""

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from glowify.core.config import StorefrontConfig, get_config
from glowify.core.errors import ConflictError, InvalidRequest, NotFound
from glowify.data.database import atomic
from glowify.data.models import Coupon
from glowify.data.store import StorefrontStore, normalize_code
from glowify.schemas import CreateCouponRequest
from glowify.utils.logger import get_logger, log_operation

logger = get_logger("coupons")


def create_coupon(session: Session, request: CreateCouponRequest, config: Optional[StorefrontConfig] = None) -> Coupon:
    """
    Insert a new coupon with used_count 0 and is_active true.

    Raises:
        ConflictError: the (uppercased) code already exists.
        InvalidRequest: percentage outside (0, 100] while bounds are enforced.
    """
    config = config or get_config()
    code = normalize_code(request.code)

    if (
        config.enforce_percentage_bounds
        and request.discount_type == "percentage"
        and not 0 < request.discount_value <= 100
    ):
        raise InvalidRequest(
            "percentage discount_value must be in (0, 100]",
            {"discount_value": request.discount_value},
        )

    store = StorefrontStore(session)
    try:
        with atomic(session):
            if store.get_coupon_by_code(code) is not None:
                raise ConflictError("Coupon code already exists", {"code": code})
            coupon = Coupon(
                code=code,
                discount_type=request.discount_type,
                discount_value=request.discount_value,
                is_active=True,
                valid_from=request.valid_from,
                valid_until=request.valid_until,
                usage_limit=request.usage_limit,
                used_count=0,
                description=request.description,
            )
            session.add(coupon)
            session.flush()
    except IntegrityError:
        # Lost a race with a concurrent insert of the same code
        raise ConflictError("Coupon code already exists", {"code": code})

    log_operation(logger, "coupons", "create_coupon", coupon_id=coupon.id, code=code, result="success")
    return coupon


def toggle_coupon_active(session: Session, coupon_id: int) -> Coupon:
    """Flip is_active. Raises NotFound for an unknown id."""
    store = StorefrontStore(session)
    with atomic(session):
        coupon = store.get_coupon(coupon_id, lock=True)
        if coupon is None:
            raise NotFound("Coupon", coupon_id)
        coupon.is_active = not coupon.is_active

    log_operation(logger, "coupons", "toggle_coupon_active", coupon_id=coupon_id, is_active=coupon.is_active)
    return coupon


def list_coupons(session: Session) -> List[Coupon]:
    """All coupons, newest first."""
    stmt = select(Coupon).order_by(Coupon.created_at.desc(), Coupon.id.desc())
    return list(session.execute(stmt).scalars())
