import logging
from typing import Optional

from sqlalchemy import case, select, update
from sqlalchemy.orm import Session

from furever_orders.core.config import settings
from furever_orders.db.models import NotificationKind, Order, Product
from furever_orders.services.events import StockAlertRaised

logger = logging.getLogger(__name__)


def effective_threshold(product: Product) -> int:
    # unset and zero both mean "use the shop default"
    return product.low_stock_threshold or settings.LOW_STOCK_DEFAULT_THRESHOLD


class InventoryAdjuster:
    """Applies delivered orders to product stock and reports stock alerts."""

    def __init__(self, db: Session):
        self.db = db

    def _claim(self, order: Order) -> bool:
        stmt = (
            update(Order)
            .where(Order.id == order.id, Order.stock_applied == False)  # noqa: E712
            .values(stock_applied=True)
            .execution_options(synchronize_session=False)
        )
        claimed = self.db.execute(stmt).rowcount == 1
        self.db.expire(order, ["stock_applied"])
        return claimed

    def _decrement(self, product_id: str, quantity: int) -> Optional[Product]:
        # one statement, so concurrent deliveries can't lose an update
        stmt = (
            update(Product)
            .where(Product.id == product_id)
            .values(count_in_stock=case(
                (Product.count_in_stock > quantity, Product.count_in_stock - quantity),
                else_=0,
            ))
            .execution_options(synchronize_session=False)
        )
        if self.db.execute(stmt).rowcount == 0:
            return None
        return self.db.execute(
            select(Product).where(Product.id == product_id).execution_options(populate_existing=True)
        ).scalar_one()

    def apply_delivery(self, order: Order) -> list[StockAlertRaised]:
        """Decrement stock for every line of a delivered order.

        Runs at most once per order; the caller commits. Returns the low-stock and
        out-of-stock alerts the new stock levels call for.
        """
        if not self._claim(order):
            logger.info("Stock already applied for order %s, skipping", order.id)
            return []

        alerts: list[StockAlertRaised] = []
        for item in order.order_items:
            if not item.product_id:
                continue
            product = self._decrement(item.product_id, item.quantity)
            if product is None:
                logger.warning("Product %s from order %s no longer exists, skipping stock update",
                               item.product_id, order.id)
                continue

            remaining = product.count_in_stock
            threshold = effective_threshold(product)
            if remaining == 0:
                alerts.append(StockAlertRaised(kind=NotificationKind.ADMIN_OUT_OF_STOCK,
                                               product_id=product.id, remaining=0, threshold=threshold))
            elif remaining <= threshold:
                alerts.append(StockAlertRaised(kind=NotificationKind.ADMIN_LOW_STOCK,
                                               product_id=product.id, remaining=remaining, threshold=threshold))
        return alerts

    # read-outs for the admin dashboard

    def out_of_stock_products(self) -> list[Product]:
        stmt = select(Product).where(Product.count_in_stock == 0).order_by(Product.name)
        return list(self.db.execute(stmt).scalars().all())

    def low_stock_products(self) -> list[Product]:
        stmt = select(Product).where(Product.count_in_stock > 0).order_by(Product.name)
        return [p for p in self.db.execute(stmt).scalars().all() if p.count_in_stock <= effective_threshold(p)]

    def inventory_summary(self) -> dict:
        products = list(self.db.execute(select(Product).order_by(Product.name)).scalars().all())
        out_of_stock = [p for p in products if p.count_in_stock == 0]
        low_stock = [p for p in products if 0 < p.count_in_stock <= effective_threshold(p)]
        return {
            "total": len(products),
            "out_of_stock": len(out_of_stock),
            "low_stock": len(low_stock),
            "in_stock": len(products) - len(out_of_stock) - len(low_stock),
            "total_inventory_value": sum(p.price_cents * p.count_in_stock for p in products) / 100,
            "total_stock_count": sum(p.count_in_stock for p in products),
            "out_of_stock_products": [{"id": p.id, "name": p.name, "image": p.image} for p in out_of_stock],
            "low_stock_products": [
                {"id": p.id, "name": p.name, "image": p.image,
                 "count_in_stock": p.count_in_stock, "low_stock_threshold": effective_threshold(p)}
                for p in low_stock
            ],
        }
