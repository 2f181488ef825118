"""Order placement, status administration and customer handoff."""

from glowify.orders.placement import place_order
from glowify.orders.status import get_order, list_all_orders, list_user_orders, update_order_status
from glowify.orders.handoff import Handoff, build_handoff

__all__ = [
    'place_order',
    'get_order',
    'list_all_orders',
    'list_user_orders',
    'update_order_status',
    'Handoff',
    'build_handoff',
]
