"""Queue order e-mails for the notification worker."""
import logging

from rq import Retry

from storefront import extensions
from storefront.workers.notifications import (
    CONFIRMATION,
    STATUS_UPDATE,
    report_dead_letter,
    send_order_email,
)

logger = logging.getLogger(__name__)

RETRY_INTERVALS = [30, 120, 300]


def _enqueue(order_id, kind):
    """Enqueue a send job. Never raises; returns whether it was queued."""
    queue = extensions.notification_queue
    if queue is None:
        logger.warning("Notification queue not initialised, %s e-mail for %s not sent", kind, order_id)
        return False
    try:
        queue.enqueue(
            send_order_email,
            order_id,
            kind,
            retry=Retry(max=len(RETRY_INTERVALS), interval=RETRY_INTERVALS),
            on_failure=report_dead_letter,
        )
    except Exception:
        logger.exception("Failed to enqueue %s e-mail for order %s", kind, order_id)
        return False
    return True


def notify_order_confirmation(order_id):
    return _enqueue(order_id, CONFIRMATION)


def notify_status_update(order_id):
    return _enqueue(order_id, STATUS_UPDATE)
