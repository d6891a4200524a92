import enum
import uuid
from datetime import datetime, timezone
from storefront.extensions import db


class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    PAYMENT_INITIATED = "payment_initiated"
    PAID = "paid"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"

    @property
    def label(self):
        return self.value.replace("_", " ").title()


ALLOWED_TRANSITIONS = {
    OrderStatus.PENDING: {
        OrderStatus.PAYMENT_INITIATED,
        OrderStatus.PAID,
        OrderStatus.PROCESSING,
        OrderStatus.CANCELLED,
    },
    OrderStatus.PAYMENT_INITIATED: {
        OrderStatus.PENDING,
        OrderStatus.PAID,
        OrderStatus.CANCELLED,
    },
    OrderStatus.PAID: {
        OrderStatus.PROCESSING,
        OrderStatus.SHIPPED,
        OrderStatus.CANCELLED,
        OrderStatus.REFUNDED,
    },
    OrderStatus.PROCESSING: {
        OrderStatus.SHIPPED,
        OrderStatus.CANCELLED,
        OrderStatus.REFUNDED,
    },
    OrderStatus.SHIPPED: {
        OrderStatus.DELIVERED,
        OrderStatus.CANCELLED,
        OrderStatus.REFUNDED,
    },
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
    OrderStatus.REFUNDED: set(),
}

OPEN_STATUSES = (
    OrderStatus.PENDING,
    OrderStatus.PAYMENT_INITIATED,
    OrderStatus.PAID,
    OrderStatus.PROCESSING,
)


def can_transition(current, target):
    """Re-saving the current status is always allowed."""
    current = OrderStatus(current)
    target = OrderStatus(target)
    return current == target or target in ALLOWED_TRANSITIONS[current]


def _new_order_id():
    return str(uuid.uuid4())


class Order(db.Model):
    __tablename__ = "orders"

    id = db.Column(db.String(36), primary_key=True, default=_new_order_id)
    reference_number = db.Column(db.String(32), unique=True, nullable=False, index=True)
    customer_name = db.Column(db.String(255), nullable=False)
    customer_email = db.Column(db.String(255), nullable=False, index=True)
    shipping_address = db.Column(db.JSON, default=dict)
    # Snapshot at purchase time; later catalog edits never touch it
    items = db.Column(db.JSON, default=list)
    subtotal = db.Column(db.Float, nullable=False, default=0)
    shipping = db.Column(db.Float, nullable=False, default=0)
    tax = db.Column(db.Float, nullable=False, default=0)
    total = db.Column(db.Float, nullable=False, default=0)
    status = db.Column(
        db.String(32), nullable=False, default=OrderStatus.PENDING.value, index=True
    )
    tracking_number = db.Column(db.String(255))
    notes = db.Column(db.Text)
    payment_provider = db.Column(db.String(50))
    payment_id = db.Column(db.String(255), index=True)
    created_at = db.Column(
        db.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    @property
    def status_label(self):
        try:
            return OrderStatus(self.status).label
        except ValueError:
            return self.status

    def to_dict(self):
        return {
            "id": self.id,
            "reference_number": self.reference_number,
            "customer_name": self.customer_name,
            "customer_email": self.customer_email,
            "shipping_address": self.shipping_address or {},
            "items": self.items or [],
            "subtotal": self.subtotal,
            "shipping": self.shipping,
            "tax": self.tax,
            "total": self.total,
            "status": self.status,
            "tracking_number": self.tracking_number,
            "notes": self.notes,
            "payment_provider": self.payment_provider,
            "payment_id": self.payment_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<Order {self.reference_number} [{self.status}]>"
