from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel
from furever_orders.db.models import NotificationKind, OrderStatus

# The mobile client speaks camelCase; field names stay snake_case.
class CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True

class OrderItemIn(CamelModel):
    oid: Optional[str] = Field(default=None, alias="_id")
    id: Optional[str] = None
    product: Optional[str] = None
    name: str = ""
    price: Optional[float] = 0
    image: str = ""
    quantity: Optional[int] = 1

class CreateOrderRequest(CamelModel):
    order_items: List[OrderItemIn] = []
    shipping_address1: str = ""
    shipping_address2: str = ""
    phone: str = ""
    payment_method: str = ""
    user: Optional[str] = None

class StatusUpdate(CamelModel):
    status: str

class OrderItemRead(CamelModel):
    product_id: Optional[str] = None
    name: str
    price: float
    image: str = ""
    quantity: int

class OrderRead(CamelModel):
    id: str
    order_items: List[OrderItemRead]
    shipping_address1: str = ""
    shipping_address2: str = ""
    phone: str = ""
    payment_method: str = ""
    status: OrderStatus
    total_price: float
    customer_id: Optional[str] = None
    stock_applied: bool
    date_ordered: datetime
    created_at: datetime
    updated_at: datetime

class NotificationRead(CamelModel):
    id: str
    user_id: str
    kind: NotificationKind
    title: str
    message: str
    order_id: Optional[str] = None
    product_id: Optional[str] = None
    read: bool
    created_at: datetime

class UnreadCount(BaseModel):
    count: int

class ProductStockRead(CamelModel):
    id: str
    name: str
    image: str = ""
    price: Optional[float] = None
    count_in_stock: Optional[int] = None
    low_stock_threshold: Optional[int] = None

class InventorySummary(CamelModel):
    total: int
    out_of_stock: int
    low_stock: int
    in_stock: int
    total_inventory_value: float
    total_stock_count: int
    out_of_stock_products: List[ProductStockRead] = []
    low_stock_products: List[ProductStockRead] = []
