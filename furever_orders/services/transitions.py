"""
Order status state machine.

    Pending -> Processing -> Shipped -> Delivered
       |           |
       +-----------+--> Canceled

Delivered and Canceled are terminal. The same table applies to every caller:
admin status updates and customer cancellations both go through apply_status.
"""

import logging
from datetime import datetime
from typing import Any, Callable, Iterable, Mapping, NamedTuple, Optional, Union

from sqlalchemy import update
from sqlalchemy.orm import Session

from furever_orders.db.models import NotificationKind, Order, OrderStatus, User, now_utc
from furever_orders.errors import InvalidTransitionError, ValidationError
from furever_orders.services.events import (
    AdminsNotified,
    CustomerNotified,
    EmailQueued,
    OrderEvent,
    StockAlertRaised,
)
from furever_orders.services.inventory import InventoryAdjuster
from furever_orders.services.orders import OrderStore
from furever_orders.services.templates import STATUS_KINDS

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.PROCESSING, OrderStatus.CANCELED}),
    OrderStatus.PROCESSING: frozenset({OrderStatus.SHIPPED, OrderStatus.CANCELED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELED: frozenset(),
}


def parse_status(value: Union[str, OrderStatus]) -> OrderStatus:
    try:
        return OrderStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in OrderStatus)
        raise ValidationError(f"Invalid status {value!r}. Expected one of: {allowed}")


def is_allowed(current: OrderStatus, requested: OrderStatus) -> bool:
    return requested in ALLOWED_TRANSITIONS[current]


def check_transition(current: OrderStatus, requested: OrderStatus) -> None:
    if not is_allowed(current, requested):
        raise InvalidTransitionError(current.value, requested.value)


class TransitionResult(NamedTuple):
    order: Order
    events: list[OrderEvent]


class TransitionEngine:
    """Places orders and moves them through their lifecycle.

    Every successful call commits and returns the side effects it calls for as a
    list of events; nothing is sent from here. Feed the events to EventDispatcher.
    """

    def __init__(self, db: Session, clock: Callable[[], datetime] = now_utc):
        self.db = db
        self.clock = clock
        self.store = OrderStore(db, clock=clock)
        self.inventory = InventoryAdjuster(db)

    def _customer(self, customer_id: Optional[str]) -> Optional[User]:
        if not customer_id:
            return None
        return self.db.get(User, customer_id)

    def place_order(
        self,
        items: Iterable[Mapping[str, Any]],
        shipping_address1: str = "",
        shipping_address2: str = "",
        phone: str = "",
        payment_method: str = "",
        customer_id: Optional[str] = None,
    ) -> TransitionResult:
        order = self.store.create_order(
            items, shipping_address1, shipping_address2, phone, payment_method, customer_id,
        )
        customer = self._customer(order.customer_id)
        events: list[OrderEvent] = []
        if order.customer_id:
            events.append(CustomerNotified(customer_id=order.customer_id,
                                           kind=NotificationKind.ORDER_CONFIRMED, order_id=order.id))
            if customer and customer.email:
                events.append(EmailQueued(address=customer.email,
                                          kind=NotificationKind.ORDER_CONFIRMED, order_id=order.id))
        events.append(AdminsNotified(kind=NotificationKind.ADMIN_NEW_ORDER, order_id=order.id,
                                     customer_name=customer.name if customer else None))
        return TransitionResult(order, events)

    def apply_status(self, order_id: str, requested: Union[str, OrderStatus]) -> TransitionResult:
        status = parse_status(requested)
        order = self.store.get_order(order_id)
        current = order.status
        check_transition(current, status)

        # compare-and-set: a concurrent update of the same order makes this a no-op
        stmt = (
            update(Order)
            .where(Order.id == order.id, Order.status == current)
            .values(status=status, updated_at=self.clock())
            .execution_options(synchronize_session=False)
        )
        if self.db.execute(stmt).rowcount != 1:
            self.db.rollback()
            fresh = self.store.get_order(order_id)
            raise InvalidTransitionError(fresh.status.value, status.value)
        self.db.expire(order, ["status", "updated_at"])

        alerts: list[StockAlertRaised] = []
        if status == OrderStatus.DELIVERED:
            alerts = self.inventory.apply_delivery(order)
        self.db.commit()
        self.db.refresh(order)
        logger.info("Order %s moved %s -> %s", order.id, current.value, status.value)

        return TransitionResult(order, self._status_events(order, status, alerts))

    def cancel_order(self, order_id: str) -> TransitionResult:
        return self.apply_status(order_id, OrderStatus.CANCELED)

    def _status_events(self, order: Order, status: OrderStatus,
                       alerts: list[StockAlertRaised]) -> list[OrderEvent]:
        kind = STATUS_KINDS[status]
        customer = self._customer(order.customer_id)
        events: list[OrderEvent] = []
        if order.customer_id:
            events.append(CustomerNotified(customer_id=order.customer_id, kind=kind, order_id=order.id))
            if customer and customer.email:
                events.append(EmailQueued(address=customer.email, kind=kind, order_id=order.id))
        if status == OrderStatus.DELIVERED:
            events.append(AdminsNotified(kind=NotificationKind.ADMIN_ORDER_DELIVERED, order_id=order.id,
                                         customer_name=customer.name if customer else None))
            events.extend(alerts)
        return events
