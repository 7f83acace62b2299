import logging
from datetime import datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Callable, Iterable, Mapping, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from furever_orders.db.models import Order, OrderItem, OrderStatus, now_utc
from furever_orders.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

# width of the product_id columns
PRODUCT_REF_MAX = 32


def to_cents(amount: Any) -> int:
    try:
        value = Decimal(str(amount if amount is not None else 0))
    except InvalidOperation:
        raise ValidationError(f"Invalid price: {amount!r}")
    if not value.is_finite() or value < 0:
        raise ValidationError(f"Invalid price: {amount!r}")
    return int((value * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _snapshot_line(raw: Mapping[str, Any], position: int) -> OrderItem:
    # the mobile cart sends whole product objects, so the id may sit under any of these
    product_ref = raw.get("_id") or raw.get("id") or raw.get("product")
    if product_ref and len(str(product_ref)) > PRODUCT_REF_MAX:
        raise ValidationError(f"Invalid product reference: {str(product_ref)[:PRODUCT_REF_MAX]}...")
    quantity = raw.get("quantity")
    if quantity is None:
        quantity = 1
    try:
        quantity = int(quantity)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid quantity: {quantity!r}")
    if quantity < 1:
        raise ValidationError(f"Item quantity must be at least 1 (got {quantity})")
    return OrderItem(
        position=position,
        product_id=str(product_ref) if product_ref else None,
        name=raw.get("name") or "",
        unit_price_cents=to_cents(raw.get("price")),
        image=raw.get("image") or "",
        quantity=quantity,
    )


class OrderStore:
    """Creates and reads orders. Status changes go through TransitionEngine."""

    def __init__(self, db: Session, clock: Callable[[], datetime] = now_utc):
        self.db = db
        self.clock = clock

    def create_order(
        self,
        items: Iterable[Mapping[str, Any]],
        shipping_address1: str = "",
        shipping_address2: str = "",
        phone: str = "",
        payment_method: str = "",
        customer_id: Optional[str] = None,
    ) -> Order:
        lines = [_snapshot_line(raw, pos) for pos, raw in enumerate(items or [])]
        if not lines:
            raise ValidationError("No order items.")

        now = self.clock()
        order = Order(
            order_items=lines,
            shipping_address1=shipping_address1 or "",
            shipping_address2=shipping_address2 or "",
            phone=phone or "",
            payment_method=payment_method or "",
            customer_id=customer_id or None,
            status=OrderStatus.PENDING,
            # computed once; later catalog price edits never touch it
            total_cents=sum(line.unit_price_cents * line.quantity for line in lines),
            stock_applied=False,
            date_ordered=now,
            created_at=now,
            updated_at=now,
        )
        self.db.add(order)
        self.db.commit()
        self.db.refresh(order)
        logger.info("Order %s created with %d line(s), total_cents=%d", order.id, len(lines), order.total_cents)
        return order

    def get_order(self, order_id: str) -> Order:
        order = self.db.get(Order, order_id)
        if not order:
            raise NotFoundError("Order", order_id)
        return order

    def list_orders_for_customer(self, customer_id: str) -> list[Order]:
        stmt = (
            select(Order)
            .where(Order.customer_id == customer_id)
            .order_by(Order.date_ordered.desc(), Order.created_at.desc())
        )
        return list(self.db.execute(stmt).scalars().all())

    def list_all_orders(self) -> list[Order]:
        stmt = select(Order).order_by(Order.date_ordered.desc(), Order.created_at.desc())
        return list(self.db.execute(stmt).scalars().all())

    def delete_order(self, order_id: str) -> None:
        order = self.get_order(order_id)
        self.db.delete(order)
        self.db.commit()
        logger.info("Order %s purged", order_id)
