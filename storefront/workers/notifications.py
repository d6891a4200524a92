"""RQ worker jobs: order e-mails."""
import logging

from flask import current_app, has_app_context

from storefront import create_app
from storefront.extensions import db
from storefront.models.order import Order
from storefront.services import mail_service
from storefront.services.order_emails import render_order_confirmation, render_status_update

logger = logging.getLogger(__name__)

CONFIRMATION = "confirmation"
STATUS_UPDATE = "status_update"

RENDERERS = {
    CONFIRMATION: render_order_confirmation,
    STATUS_UPDATE: render_status_update,
}

_worker_app = None


def _get_app():
    """Return an app instance for worker execution.

    Reuse the current app when already inside an app context (tests/CLI),
    otherwise lazily create the worker app once.
    """
    global _worker_app
    if has_app_context():
        return current_app._get_current_object()
    if _worker_app is None:
        _worker_app = create_app()
    return _worker_app


def send_order_email(order_id, kind):
    """Render and send one order e-mail.

    The order is re-read so the message reflects its state at send time.
    Delivery errors propagate so RQ can retry the job.
    """
    app = _get_app()
    with app.app_context():
        order = db.session.get(Order, order_id)
        if order is None:
            logger.error("Order %s not found, dropping %s e-mail", order_id, kind)
            return False

        render = RENDERERS.get(kind)
        if render is None:
            logger.error("Unknown e-mail kind %r for order %s", kind, order_id)
            return False

        subject, html = render(order)
        sent = mail_service.send(order.customer_email, subject, html)
        if sent:
            logger.info("Sent %s e-mail for order %s", kind, order.reference_number)
        return sent


def report_dead_letter(job, connection, type, value, traceback):
    """RQ failure callback.

    Called after every failed attempt; only the last one is a dead letter.
    ``job`` is None when the job ran inline without a queue.
    """
    retries_left = getattr(job, "retries_left", None) or 0
    job_id = getattr(job, "id", "inline")
    args = getattr(job, "args", ())
    if retries_left > 0:
        logger.warning(
            "Notification job %s failed (%s: %s), %d retries left",
            job_id, getattr(type, "__name__", type), value, retries_left,
        )
        return
    logger.error(
        "Notification job %s dead-lettered after final attempt, args=%r: %s: %s",
        job_id, args, getattr(type, "__name__", type), value,
    )
