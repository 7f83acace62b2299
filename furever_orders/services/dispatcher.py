import logging
from typing import Callable, Iterable, Optional

from sqlalchemy.orm import Session

from furever_orders.db.models import NotificationKind, Order, Product
from furever_orders.errors import DependencyFailure, NotFoundError
from furever_orders.services.events import (
    AdminsNotified,
    CustomerNotified,
    EmailQueued,
    OrderEvent,
    StockAlertRaised,
)
from furever_orders.services.notifications import NotificationFanout

logger = logging.getLogger(__name__)


class EventDispatcher:
    """
    Runs the side effects described by engine events.

    Each event is its own unit of work. A failure is rolled back, logged and
    reported in the return value; it never propagates, so the order change that
    produced the events stands regardless of notification delivery.
    """

    def __init__(self, db: Session, fanout: NotificationFanout,
                 publish: Optional[Callable[[dict], None]] = None):
        self.db = db
        self.fanout = fanout
        self.publish = publish
        self._handlers = {
            CustomerNotified: self._on_customer_notified,
            AdminsNotified: self._on_admins_notified,
            EmailQueued: self._on_email_queued,
            StockAlertRaised: self._on_stock_alert,
        }

    def dispatch(self, events: Iterable[OrderEvent]) -> list[OrderEvent]:
        failed = []
        for event in events:
            name = type(event).__name__
            try:
                self._handlers[type(event)](event)
                self.db.commit()
            except DependencyFailure as e:
                self.db.rollback()
                logger.warning("%s not delivered: %s", name, e)
                failed.append(event)
            except Exception:
                self.db.rollback()
                logger.exception("%s side effect failed", name)
                failed.append(event)
            self._publish(event)
        return failed

    def _publish(self, event: OrderEvent) -> None:
        if self.publish is None:
            return
        try:
            self.publish(event.to_message())
        except Exception:
            logger.exception("Publishing %s failed", type(event).__name__)

    def _order(self, order_id: str) -> Order:
        order = self.db.get(Order, order_id)
        if not order:
            raise NotFoundError("Order", order_id)
        return order

    def _on_customer_notified(self, event: CustomerNotified) -> None:
        self.fanout.notify_customer(event.customer_id, event.kind, self._order(event.order_id))

    def _on_admins_notified(self, event: AdminsNotified) -> None:
        self.fanout.notify_all_admins(event.kind, self._order(event.order_id), event.customer_name)

    def _on_email_queued(self, event: EmailQueued) -> None:
        if not self.fanout.send_email(event.address, event.kind, self._order(event.order_id)):
            raise DependencyFailure("mail", f"{event.kind.value} email to {event.address} was not sent")

    def _on_stock_alert(self, event: StockAlertRaised) -> None:
        product = self.db.get(Product, event.product_id)
        if not product:
            raise NotFoundError("Product", event.product_id)
        admins = self.fanout.active_admins()
        if not admins:
            return
        if event.kind == NotificationKind.ADMIN_OUT_OF_STOCK:
            self.fanout.notify_out_of_stock(product, admins)
        else:
            self.fanout.notify_low_stock(product, admins, event.remaining, event.threshold)
