"""
Domain events produced by order creation and status transitions.

The engine never performs notification side effects itself. It returns a list of
these events and EventDispatcher turns them into notification rows, emails and
order.events messages.
"""

from typing import Optional

from pydantic import BaseModel

from furever_orders.db.models import NotificationKind


class OrderEvent(BaseModel):
    class Config:
        frozen = True

    def to_message(self) -> dict:
        return {"type": type(self).__name__, **self.model_dump(mode="json")}


class CustomerNotified(OrderEvent):
    """An in-app notification of `kind` is due for the order's customer."""
    customer_id: str
    kind: NotificationKind
    order_id: str


class AdminsNotified(OrderEvent):
    """Every active admin gets a notification of `kind`."""
    kind: NotificationKind
    order_id: str
    customer_name: Optional[str] = None


class EmailQueued(OrderEvent):
    address: str
    kind: NotificationKind
    order_id: str


class StockAlertRaised(OrderEvent):
    """A delivery left a product at or below its low-stock threshold."""
    kind: NotificationKind
    product_id: str
    remaining: int
    threshold: int
