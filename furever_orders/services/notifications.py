import logging
from datetime import datetime, timedelta
from typing import Callable, Optional, Sequence

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from furever_orders.core.config import settings
from furever_orders.db.models import Notification, NotificationKind, Order, Product, User, now_utc
from furever_orders.errors import NotFoundError
from furever_orders.services import templates
from furever_orders.services.mailer import MailTransport, get_transport

logger = logging.getLogger(__name__)


class NotificationFanout:
    """
    Materializes in-app notifications and sends customer emails.

    Methods only add and flush; the caller owns the transaction. Stock alerts are
    de-duplicated per (admin, kind, product) inside `dedup_window`.
    """

    def __init__(
        self,
        db: Session,
        transport: Optional[MailTransport] = None,
        clock: Callable[[], datetime] = now_utc,
        dedup_window: Optional[timedelta] = None,
    ):
        self.db = db
        self.transport = transport if transport is not None else get_transport()
        self.clock = clock
        if dedup_window is None:
            dedup_window = timedelta(hours=settings.ALERT_DEDUP_HOURS)
        self.dedup_window = dedup_window

    def active_admins(self) -> list[User]:
        stmt = select(User).where(User.is_admin == True, User.is_active == True).order_by(User.id)  # noqa: E712
        return list(self.db.execute(stmt).scalars().all())

    def _create(self, user_id: str, kind: NotificationKind, title: str, message: str,
                order_id: Optional[str] = None, product_id: Optional[str] = None) -> Notification:
        n = Notification(
            user_id=user_id, kind=kind, title=title, message=message,
            order_id=order_id, product_id=product_id, read=False, created_at=self.clock(),
        )
        self.db.add(n)
        self.db.flush()
        return n

    def notify_customer(self, customer_id: str, kind: NotificationKind, order: Order) -> Notification:
        if kind.is_admin_kind:
            raise ValueError(f"{kind.value} is an admin notification")
        title, message = templates.customer_text(kind, order)
        return self._create(customer_id, kind, title, message, order_id=order.id)

    def notify_all_admins(self, kind: NotificationKind, order: Order,
                          context_text: Optional[str] = None) -> list[Notification]:
        title, message = templates.admin_order_text(kind, order, context_text)
        return [self._create(admin.id, kind, title, message, order_id=order.id)
                for admin in self.active_admins()]

    def _alerted_recently(self, admin_id: str, kind: NotificationKind, product_id: str) -> bool:
        since = self.clock() - self.dedup_window
        stmt = (
            select(Notification.id)
            .where(
                Notification.user_id == admin_id,
                Notification.kind == kind,
                Notification.product_id == product_id,
                Notification.created_at >= since,
            )
            .limit(1)
        )
        return self.db.execute(stmt).first() is not None

    def _stock_alert(self, kind: NotificationKind, product: Product, admins: Sequence[User],
                     title: str, message: str) -> list[Notification]:
        created = []
        for admin in admins:
            if self._alerted_recently(admin.id, kind, product.id):
                logger.debug("Skipping %s for product %s, admin %s already alerted", kind.value, product.id, admin.id)
                continue
            created.append(self._create(admin.id, kind, title, message, product_id=product.id))
        return created

    def notify_low_stock(self, product: Product, admins: Sequence[User],
                         remaining: int, threshold: int) -> list[Notification]:
        title, message = templates.low_stock_text(product, remaining, threshold)
        return self._stock_alert(NotificationKind.ADMIN_LOW_STOCK, product, admins, title, message)

    def notify_out_of_stock(self, product: Product, admins: Sequence[User]) -> list[Notification]:
        title, message = templates.out_of_stock_text(product)
        return self._stock_alert(NotificationKind.ADMIN_OUT_OF_STOCK, product, admins, title, message)

    def send_email(self, to_address: str, kind: NotificationKind, order: Order) -> bool:
        """Render and send a customer email. Never raises."""
        if not to_address:
            return False
        try:
            subject, html = templates.render_email(kind, order)
            self.transport.send(to_address, subject, html)
        except Exception:
            logger.exception("Email %s for order %s to %s failed", kind.value, order.id, to_address)
            return False
        return True

    # inbox

    def list_for_user(self, user_id: str, limit: Optional[int] = None) -> list[Notification]:
        stmt = (
            select(Notification)
            .where(Notification.user_id == user_id)
            .order_by(Notification.created_at.desc())
            .limit(limit or settings.NOTIFICATION_LIST_LIMIT)
        )
        return list(self.db.execute(stmt).scalars().all())

    def unread_count(self, user_id: str) -> int:
        stmt = select(func.count(Notification.id)).where(Notification.user_id == user_id, Notification.read == False)  # noqa: E712
        return self.db.execute(stmt).scalar_one()

    def get(self, notification_id: str) -> Notification:
        n = self.db.get(Notification, notification_id)
        if not n:
            raise NotFoundError("Notification", notification_id)
        return n

    def mark_read(self, notification_id: str) -> Notification:
        n = self.get(notification_id)
        n.read = True
        self.db.commit()
        self.db.refresh(n)
        return n

    def mark_all_read(self, user_id: str) -> int:
        stmt = (
            update(Notification)
            .where(Notification.user_id == user_id, Notification.read == False)  # noqa: E712
            .values(read=True)
            .execution_options(synchronize_session=False)
        )
        count = self.db.execute(stmt).rowcount
        self.db.commit()
        return count
