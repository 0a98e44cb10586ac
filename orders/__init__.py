"""
Orders domain package.

Public API:
- Domain models: Order, OrderStatus, OrderPatch, TimelineEvent
"""
from .models import Order, OrderPatch, OrderStatus, TimelineEvent

__all__ = ["Order",
           "OrderPatch",
           "OrderStatus",
           "TimelineEvent",
           ]
