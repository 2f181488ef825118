"""
Order lookup and admin status changes.

Status only moves forward, one step at a time:

    pending -> confirmed -> completed

There is no cancelled state. Re-submitting the current status is allowed
and only updates the admin notes.
"""

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from glowify.core.errors import InvalidStatusTransition, NotFound
from glowify.data.database import atomic
from glowify.data.models import Order
from glowify.utils.logger import get_logger, log_operation

logger = get_logger("orders.status")

NEXT_STATUS = {
    "pending": "confirmed",
    "confirmed": "completed",
}


def can_transition(current: str, requested: str) -> bool:
    return NEXT_STATUS.get(current) == requested


def get_order(session: Session, order_id: int) -> Order:
    order = session.get(Order, order_id)
    if order is None:
        raise NotFound("Order", order_id)
    return order


def list_user_orders(session: Session, user_id: str) -> List[Order]:
    stmt = (
        select(Order)
        .where(Order.user_id == user_id)
        .order_by(Order.created_at.desc(), Order.id.desc())
    )
    return list(session.execute(stmt).scalars())


def list_all_orders(session: Session, status: Optional[str] = None) -> List[Order]:
    stmt = select(Order).order_by(Order.created_at.desc(), Order.id.desc())
    if status:
        stmt = stmt.where(Order.status == status)
    return list(session.execute(stmt).scalars())


def update_order_status(session: Session, order_id: int, status: str, notes: Optional[str] = None) -> Order:
    """
    Move an order to ``status`` and optionally record admin notes.

    Raises:
        NotFound: unknown order id.
        InvalidStatusTransition: ``status`` is not the next step.
    """
    with atomic(session):
        stmt = (
            select(Order)
            .where(Order.id == order_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        order = session.execute(stmt).scalar_one_or_none()
        if order is None:
            raise NotFound("Order", order_id)

        previous = order.status
        if status != previous and not can_transition(previous, status):
            raise InvalidStatusTransition(previous, status)

        order.status = status
        if notes is not None:
            order.notes = notes

    log_operation(
        logger, "orders", "update_order_status",
        order_id=order_id, previous=previous, status=status, result="success",
    )
    return order
