"""
Notification and email copy, keyed by NotificationKind.

In-app notifications are plain text (title + message). Emails are HTML and only
exist for customer kinds; admin kinds are in-app only.
"""

from html import escape
from typing import NamedTuple, Optional

from furever_orders.db.models import NotificationKind, Order, OrderStatus, Product


class StatusCopy(NamedTuple):
    title: str
    message: str  # formatted with short_id
    emoji: str


STATUS_KINDS = {
    OrderStatus.PROCESSING: NotificationKind.ORDER_PROCESSING,
    OrderStatus.SHIPPED: NotificationKind.ORDER_SHIPPED,
    OrderStatus.DELIVERED: NotificationKind.ORDER_DELIVERED,
    OrderStatus.CANCELED: NotificationKind.ORDER_CANCELED,
}

CUSTOMER_COPY = {
    NotificationKind.ORDER_CONFIRMED: StatusCopy(
        "Order Confirmed!",
        "Your order #{short_id} has been placed successfully. Total: ${total}",
        "\U0001F43E",
    ),
    NotificationKind.ORDER_PROCESSING: StatusCopy(
        "Order is Being Processed",
        "Your order #{short_id} is now being processed. We're preparing your items!",
        "\U0001F4E6",
    ),
    NotificationKind.ORDER_SHIPPED: StatusCopy(
        "Order Shipped!",
        "Great news! Your order #{short_id} has been shipped and is on its way to you.",
        "\U0001F69A",
    ),
    NotificationKind.ORDER_DELIVERED: StatusCopy(
        "Order Delivered",
        "Your order #{short_id} has been delivered. Enjoy your purchase! \U0001F43E",
        "✅",
    ),
    NotificationKind.ORDER_CANCELED: StatusCopy(
        "Order Canceled",
        "Your order #{short_id} has been canceled.",
        "❌",
    ),
}

ADMIN_TITLES = {
    NotificationKind.ADMIN_NEW_ORDER: "New Order Placed",
    NotificationKind.ADMIN_ORDER_DELIVERED: "Order Delivered",
    NotificationKind.ADMIN_LOW_STOCK: "Low Stock Warning",
    NotificationKind.ADMIN_OUT_OF_STOCK: "Out of Stock Alert",
}

FOOTER = '<p style="color:#888;font-size:12px;margin-top:24px">This is an automated email from FurEver Pet Shop.</p>'


def money(cents: int) -> str:
    return f"{cents / 100:.2f}"


def customer_text(kind: NotificationKind, order: Order) -> tuple[str, str]:
    copy = CUSTOMER_COPY[kind]
    return copy.title, copy.message.format(short_id=order.short_id, total=money(order.total_cents))


def admin_order_text(kind: NotificationKind, order: Order, customer_name: Optional[str]) -> tuple[str, str]:
    count = len(order.order_items)
    total = money(order.total_cents)
    if kind == NotificationKind.ADMIN_NEW_ORDER:
        message = f"{customer_name or 'A customer'} placed order #{order.short_id} with {count} item(s) totaling ${total}."
    elif kind == NotificationKind.ADMIN_ORDER_DELIVERED:
        message = (f"Order #{order.short_id} from {customer_name or 'a customer'} "
                   f"({count} item(s), ${total}) has been delivered successfully.")
    else:
        raise ValueError(f"{kind.value} is not an order notification")
    return ADMIN_TITLES[kind], message


def low_stock_text(product: Product, remaining: int, threshold: int) -> tuple[str, str]:
    return (ADMIN_TITLES[NotificationKind.ADMIN_LOW_STOCK],
            f'"{product.name}" is running low, only {remaining} left in stock (threshold: {threshold}).')


def out_of_stock_text(product: Product) -> tuple[str, str]:
    return (ADMIN_TITLES[NotificationKind.ADMIN_OUT_OF_STOCK],
            f'"{product.name}" is now out of stock (0 remaining). Please restock immediately.')


def _confirmation_html(order: Order) -> str:
    rows = "".join(
        '<tr><td style="padding:8px;border-bottom:1px solid #eee">{name}</td>'
        '<td style="padding:8px;border-bottom:1px solid #eee;text-align:center">{qty}</td>'
        '<td style="padding:8px;border-bottom:1px solid #eee;text-align:right">${price}</td></tr>'.format(
            name=escape(item.name or "Product"), qty=item.quantity, price=money(item.unit_price_cents))
        for item in order.order_items
    )
    address = escape(order.shipping_address1)
    if order.shipping_address2:
        address += ", " + escape(order.shipping_address2)
    return f"""
        <div style="font-family:Arial,sans-serif;max-width:600px;margin:auto">
          <h2 style="color:#FF8C42">\U0001F43E Thank you for your order!</h2>
          <p>Your order <strong>#{order.short_id}</strong> has been placed successfully.</p>
          <table style="width:100%;border-collapse:collapse;margin:16px 0">
            <tr style="background:#f5f5f5"><th style="padding:8px;text-align:left">Item</th><th style="padding:8px;text-align:center">Qty</th><th style="padding:8px;text-align:right">Price</th></tr>
            {rows}
          </table>
          <p><strong>Total: ${money(order.total_cents)}</strong></p>
          <p><strong>Payment:</strong> {escape(order.payment_method or 'N/A')}</p>
          <p><strong>Shipping to:</strong> {address}</p>
          {FOOTER}
        </div>"""


def render_email(kind: NotificationKind, order: Order) -> tuple[str, str]:
    """Return (subject, html) for a customer email."""
    if kind not in CUSTOMER_COPY:
        raise ValueError(f"No email template for {kind.value}")
    copy = CUSTOMER_COPY[kind]
    if kind == NotificationKind.ORDER_CONFIRMED:
        return f"Order Confirmed - #{order.short_id}", _confirmation_html(order)

    _, message = customer_text(kind, order)
    html = f"""
        <div style="font-family:Arial,sans-serif;max-width:600px;margin:auto">
          <h2 style="color:#FF8C42">{copy.emoji} {copy.title}</h2>
          <p>{escape(message)}</p>
          <p><strong>Status:</strong> {order.status.value}</p>
          {FOOTER}
        </div>"""
    return f"{copy.emoji} {copy.title} - #{order.short_id}", html
