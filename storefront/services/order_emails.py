"""Customer e-mails for orders, rendered from Jinja templates."""
from datetime import datetime, timezone

from flask import current_app, render_template

from storefront.models.order import OrderStatus

STATUS_MESSAGES = {
    OrderStatus.PROCESSING: "We're currently processing your order and preparing it for shipment.",
    OrderStatus.SHIPPED: "Your order has been shipped and is on its way to you!",
    OrderStatus.DELIVERED: "Your order has been delivered. We hope you enjoy your purchase!",
    OrderStatus.CANCELLED: "Your order has been cancelled.",
    OrderStatus.REFUNDED: "Your order has been refunded.",
}

# Which free-text field is shown under the message, and its caption
NOTES_CAPTIONS = {
    OrderStatus.CANCELLED: "Cancellation Reason",
    OrderStatus.REFUNDED: "Refund Notes",
}


def format_currency(amount, currency=None):
    currency = currency or current_app.config["PAYMENT_CURRENCY"]
    symbol = "S$" if currency == "SGD" else f"{currency} "
    return f"{symbol}{float(amount or 0):,.2f}"


def status_message(order):
    try:
        status = OrderStatus(order.status)
    except ValueError:
        return f"Your order status has been updated to: {order.status}"
    return STATUS_MESSAGES.get(
        status, f"Your order status has been updated to: {status.label}"
    )


def _context(order):
    config = current_app.config
    return {
        "order": order,
        "store_name": config["STORE_NAME"],
        "contact_email": config["STORE_CONTACT_EMAIL"],
        "store_address": config["STORE_ADDRESS"],
        "year": datetime.now(timezone.utc).year,
        "money": format_currency,
        "address": order.shipping_address or {},
        "items": order.items or [],
    }


def render_order_confirmation(order):
    """Return ``(subject, html)`` for a newly placed order."""
    subject = f"{current_app.config['STORE_NAME']} - Order Confirmation #{order.reference_number}"
    html = render_template("emails/order_confirmation.html", **_context(order))
    return subject, html


def render_status_update(order):
    """Return ``(subject, html)`` announcing the order's current status."""
    try:
        status = OrderStatus(order.status)
    except ValueError:
        status = None

    tracking_number = order.tracking_number if status == OrderStatus.SHIPPED else None
    notes_caption = NOTES_CAPTIONS.get(status) if order.notes else None

    subject = f"{current_app.config['STORE_NAME']} - Order #{order.reference_number} Status Update"
    html = render_template(
        "emails/order_status_update.html",
        message=status_message(order),
        tracking_number=tracking_number,
        notes_caption=notes_caption,
        **_context(order),
    )
    return subject, html
