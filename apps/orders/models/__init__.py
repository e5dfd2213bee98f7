"""
Orders app models, split per aggregate part.

    from apps.orders.models import Order, OrderItem, OrderItemStatusHistory
"""

from .status import OrderItemStatus
from .order import Order
from .item import OrderItem
from .history import OrderItemStatusHistory

__all__ = ["OrderItemStatus", "Order", "OrderItem", "OrderItemStatusHistory"]
