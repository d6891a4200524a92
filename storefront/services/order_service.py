"""Order lifecycle: creation, status changes and statistics.

All order writes go through this module so every status change is checked
against the transition table and triggers a customer notification.
"""
import logging
import uuid

from sqlalchemy.exc import SQLAlchemyError

from storefront.errors import InvalidTransition
from storefront.extensions import db
from storefront.models.order import OPEN_STATUSES, Order, OrderStatus, can_transition
from storefront.services.activity_service import log_activity
from storefront.services.notification_service import (
    notify_order_confirmation,
    notify_status_update,
)

logger = logging.getLogger(__name__)

GATEWAY_STATUS_MAP = {
    "completed": OrderStatus.PAID,
    "succeeded": OrderStatus.PAID,
    "successful": OrderStatus.PAID,
    "paid": OrderStatus.PAID,
    "failed": OrderStatus.CANCELLED,
    "expired": OrderStatus.CANCELLED,
    "cancelled": OrderStatus.CANCELLED,
    "refunded": OrderStatus.REFUNDED,
}


def generate_reference_number():
    return f"ORDER-{str(uuid.uuid4())[:8]}"


def map_gateway_status(raw):
    """Translate a payment gateway status string into an OrderStatus."""
    return GATEWAY_STATUS_MAP.get(str(raw or "").strip().lower(), OrderStatus.PENDING)


def get_order(id_or_reference):
    order = db.session.get(Order, id_or_reference)
    if order is None:
        order = Order.query.filter_by(reference_number=id_or_reference).first()
    return order


def _apply_status(order, status, tracking_number=None, notes=None, actor=None):
    """Validate and persist a status change on a loaded order."""
    try:
        target = OrderStatus(status)
    except ValueError:
        return {"success": False, "message": f"Invalid order status: {status}"}

    previous = order.status
    if not can_transition(previous, target):
        error = InvalidTransition(previous, target.value)
        logger.info("Rejected status change for %s: %s", order.reference_number, error.message)
        return error.to_dict()

    order.status = target.value
    if tracking_number:
        order.tracking_number = tracking_number
    if notes:
        order.notes = notes
    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception("Failed to update order status for %s", order.id)
        return {"success": False, "message": "Failed to update order status"}

    db.session.refresh(order)
    logger.info("Order %s: %s -> %s", order.reference_number, previous, order.status)

    if actor is not None:
        log_activity(
            actor,
            "update_order",
            f"Updated order {order.reference_number} status from {previous} to {order.status}",
            order.id,
            "order",
        )
    notify_status_update(order.id)

    return {
        "success": True,
        "message": "Order status updated successfully",
        "order": order.to_dict(),
    }


def update_order_status(order_id, status, tracking_number=None, notes=None, actor=None):
    """Move an order to ``status``.

    Tracking number and notes are only overwritten when given. Returns
    ``{success, message, order?}``; nothing is written on failure.
    """
    order = get_order(order_id)
    if order is None:
        return {"success": False, "message": "Order not found"}
    return _apply_status(order, status, tracking_number, notes, actor)


def update_order_by_payment_id(payment_id, status):
    """Status change driven by the payment gateway webhook."""
    order = Order.query.filter_by(payment_id=payment_id).first() if payment_id else None
    if order is None:
        return {"success": False, "message": "Order not found with this payment ID"}
    return _apply_status(order, status)


def create_order(data):
    """Store a new order and queue its confirmation e-mail.

    ``data`` uses the model's column names. The reference number is
    generated when missing.
    """
    status = data.get("status") or OrderStatus.PENDING.value
    try:
        status = OrderStatus(status).value
    except ValueError:
        return {"success": False, "message": f"Invalid order status: {status}"}

    order = Order(
        reference_number=data.get("reference_number") or generate_reference_number(),
        customer_name=data["customer_name"],
        customer_email=data["customer_email"],
        shipping_address=data.get("shipping_address") or {},
        items=data.get("items") or [],
        subtotal=data.get("subtotal") or 0,
        shipping=data.get("shipping") or 0,
        tax=data.get("tax") or 0,
        total=data.get("total") or 0,
        status=status,
        notes=data.get("notes"),
        payment_provider=data.get("payment_provider"),
        payment_id=data.get("payment_id"),
    )
    try:
        db.session.add(order)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception("Failed to create order %s", order.reference_number)
        return {"success": False, "message": "Failed to create order"}

    logger.info("Created order %s (%s)", order.reference_number, order.status)
    notify_order_confirmation(order.id)
    return {
        "success": True,
        "message": "Order created successfully",
        "order": order.to_dict(),
    }


def list_orders(page=1, per_page=20, status=None):
    query = Order.query
    if status:
        query = query.filter_by(status=status)
    query = query.order_by(Order.created_at.desc())
    return query.paginate(page=page, per_page=per_page, error_out=False)


def get_order_statistics():
    """Totals for the admin dashboard; zeros when the store is unreachable."""
    try:
        total_orders = db.session.query(db.func.count(Order.id)).scalar() or 0
        total_revenue = db.session.query(db.func.sum(Order.total)).scalar() or 0
        pending_orders = (
            Order.query.filter(Order.status.in_([s.value for s in OPEN_STATUSES])).count()
        )
        completed_orders = Order.query.filter_by(status=OrderStatus.DELIVERED.value).count()
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception("Failed to get order statistics")
        return {
            "total_orders": 0,
            "total_revenue": 0,
            "pending_orders": 0,
            "completed_orders": 0,
        }
    return {
        "total_orders": total_orders,
        "total_revenue": float(total_revenue),
        "pending_orders": pending_orders,
        "completed_orders": completed_orders,
    }
