"""
Orders Module (``fulfillment_modules.orders``).

Merchant orders from creation to delivery, cancellation, and returns.
``OrderLifecycle`` couples each ``ORDER_WORKFLOW`` transition to its
inventory and fee side effects.
"""

from fulfillment_modules.orders.models import (
    Order,
    OrderItem,
    OrderStatus,
    ReturnType,
    coerce_items,
)
from fulfillment_modules.orders.service import OrderLifecycle
from fulfillment_modules.orders.workflows import EDITABLE_STATES, ORDER_WORKFLOW

__all__ = [
    "EDITABLE_STATES",
    "ORDER_WORKFLOW",
    "Order",
    "OrderItem",
    "OrderLifecycle",
    "OrderStatus",
    "ReturnType",
    "coerce_items",
]
