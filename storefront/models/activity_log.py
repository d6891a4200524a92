from datetime import datetime, timezone
from storefront.extensions import db


class ActivityLog(db.Model):
    """Append-only audit record of a staff action."""

    __tablename__ = "activity_logs"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(64), nullable=False, index=True)
    user_email = db.Column(db.String(255), nullable=False, default="")
    user_role = db.Column(db.String(20))
    action = db.Column(db.String(50), nullable=False, index=True)
    details = db.Column(db.Text, default="")
    entity_id = db.Column(db.String(64), index=True)
    entity_type = db.Column(db.String(50))
    ip_address = db.Column(db.String(255))
    user_agent = db.Column(db.String(512))
    timestamp = db.Column(
        db.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "user_email": self.user_email,
            "user_role": self.user_role,
            "action": self.action,
            "details": self.details,
            "entity_id": self.entity_id,
            "entity_type": self.entity_type,
            "ip_address": self.ip_address,
            "user_agent": self.user_agent,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }

    def __repr__(self):
        return f"<ActivityLog {self.action} by {self.user_email}>"
