from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import Integer, String, DateTime, ForeignKey, BigInteger, Boolean, Text, Index, Enum as SAEnum
from datetime import datetime, timezone
from enum import Enum
import uuid
from furever_orders.db.session import Base


def now_utc() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_id() -> str:
    return uuid.uuid4().hex


def _enum_column(enum_cls):
    return SAEnum(enum_cls, values_callable=lambda e: [m.value for m in e], native_enum=False, length=32)


class OrderStatus(str, Enum):
    PENDING = "Pending"
    PROCESSING = "Processing"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"
    CANCELED = "Canceled"


class NotificationKind(str, Enum):
    ORDER_CONFIRMED = "order_confirmed"
    ORDER_PROCESSING = "order_processing"
    ORDER_SHIPPED = "order_shipped"
    ORDER_DELIVERED = "order_delivered"
    ORDER_CANCELED = "order_canceled"
    ADMIN_NEW_ORDER = "admin_new_order"
    ADMIN_ORDER_DELIVERED = "admin_order_delivered"
    ADMIN_LOW_STOCK = "admin_low_stock"
    ADMIN_OUT_OF_STOCK = "admin_out_of_stock"

    @property
    def is_admin_kind(self) -> bool:
        return self.value.startswith("admin_")


class Order(Base):
    __tablename__ = "orders"
    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    shipping_address1: Mapped[str] = mapped_column(String(255), default="")
    shipping_address2: Mapped[str] = mapped_column(String(255), default="")
    phone: Mapped[str] = mapped_column(String(64), default="")
    payment_method: Mapped[str] = mapped_column(String(64), default="")
    status: Mapped[OrderStatus] = mapped_column(_enum_column(OrderStatus), default=OrderStatus.PENDING)
    total_cents: Mapped[int] = mapped_column(BigInteger, default=0)
    customer_id: Mapped[str | None] = mapped_column(String(32), index=True, nullable=True)
    stock_applied: Mapped[bool] = mapped_column(Boolean, default=False)
    date_ordered: Mapped[datetime] = mapped_column(DateTime(), default=now_utc, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(), default=now_utc)
    updated_at: Mapped[datetime] = mapped_column(DateTime(), default=now_utc)

    order_items = relationship(
        "OrderItem", back_populates="order", cascade="all, delete-orphan",
        order_by="OrderItem.position", lazy="selectin",
    )

    @property
    def short_id(self) -> str:
        return self.id[-8:].upper()

    @property
    def total_price(self) -> float:
        return self.total_cents / 100

    @property
    def is_terminal(self) -> bool:
        return self.status in (OrderStatus.DELIVERED, OrderStatus.CANCELED)


class OrderItem(Base):
    __tablename__ = "order_items"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    order_id: Mapped[str] = mapped_column(ForeignKey("orders.id", ondelete="CASCADE"), index=True)
    position: Mapped[int] = mapped_column(Integer, default=0)
    # plain reference, the product may be deleted after the order was placed
    product_id: Mapped[str | None] = mapped_column(String(32), nullable=True)
    name: Mapped[str] = mapped_column(String(255), default="")
    unit_price_cents: Mapped[int] = mapped_column(BigInteger, default=0)
    image: Mapped[str] = mapped_column(String(1024), default="")
    quantity: Mapped[int] = mapped_column(Integer, default=1)

    order = relationship("Order", back_populates="order_items")

    @property
    def price(self) -> float:
        return self.unit_price_cents / 100


class Notification(Base):
    __tablename__ = "notifications"
    __table_args__ = (
        Index("ix_notifications_dedup", "user_id", "kind", "product_id", "created_at"),
    )
    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(String(32), index=True)
    kind: Mapped[NotificationKind] = mapped_column(_enum_column(NotificationKind))
    title: Mapped[str] = mapped_column(String(255))
    message: Mapped[str] = mapped_column(Text)
    order_id: Mapped[str | None] = mapped_column(String(32), nullable=True)
    product_id: Mapped[str | None] = mapped_column(String(32), nullable=True)
    read: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(), default=now_utc)


# Tables below belong to the catalog and users services; this service reads them
# and only ever writes Product.count_in_stock.

class Product(Base):
    __tablename__ = "products"
    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    price_cents: Mapped[int] = mapped_column(BigInteger, default=0)
    image: Mapped[str] = mapped_column(String(1024), default="")
    count_in_stock: Mapped[int] = mapped_column(Integer, default=0)
    low_stock_threshold: Mapped[int | None] = mapped_column(Integer, nullable=True, default=10)

    @property
    def price(self) -> float:
        return self.price_cents / 100


class User(Base):
    __tablename__ = "users"
    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(255), default="")
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    is_admin: Mapped[bool] = mapped_column(Boolean, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
