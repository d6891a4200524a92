"""Append-only activity log of staff actions."""
import logging

from flask import has_request_context, request
from sqlalchemy.exc import SQLAlchemyError

from storefront.extensions import db
from storefront.models.activity_log import ActivityLog

logger = logging.getLogger(__name__)


def _request_origin():
    if not has_request_context():
        return None, None
    ip_address = (
        request.headers.get("X-Forwarded-For")
        or request.headers.get("X-Real-IP")
        or request.remote_addr
        or "unknown"
    )
    user_agent = request.headers.get("User-Agent") or "unknown"
    return ip_address, user_agent[:512]


def log_activity(actor, action, details, entity_id=None, entity_type=None):
    """Record an action by ``actor``.

    Super-admin actions are not logged. A failure to write the entry is
    logged and never interrupts the caller.
    """
    if actor is None:
        return None
    if actor.is_super_admin:
        logger.info(
            "Activity logging skipped for super admin %s, action: %s",
            actor.email,
            action,
        )
        return None

    ip_address, user_agent = _request_origin()
    entry = ActivityLog(
        user_id=actor.user_id,
        user_email=actor.email,
        user_role=actor.role,
        action=action,
        details=details,
        entity_id=str(entity_id) if entity_id is not None else None,
        entity_type=entity_type,
        ip_address=ip_address,
        user_agent=user_agent,
    )
    try:
        db.session.add(entry)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception("Failed to log activity %s for %s", action, actor.email)
        return None
    return entry


def _filtered(filters):
    query = ActivityLog.query
    filters = filters or {}
    if filters.get("user_id"):
        query = query.filter(ActivityLog.user_id == filters["user_id"])
    if filters.get("action"):
        query = query.filter(ActivityLog.action == filters["action"])
    if filters.get("entity_id"):
        query = query.filter(ActivityLog.entity_id == str(filters["entity_id"]))
    if filters.get("entity_type"):
        query = query.filter(ActivityLog.entity_type == filters["entity_type"])
    if filters.get("from_date"):
        query = query.filter(ActivityLog.timestamp >= filters["from_date"])
    if filters.get("to_date"):
        query = query.filter(ActivityLog.timestamp <= filters["to_date"])
    return query


def get_activity_logs(limit=100, skip=0, filters=None):
    """Most recent first."""
    return (
        _filtered(filters)
        .order_by(ActivityLog.timestamp.desc(), ActivityLog.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )


def count_activity_logs(filters=None):
    return _filtered(filters).count()
