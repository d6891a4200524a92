"""Tests for notification jobs and their queueing (mocked mail)."""
import logging
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
from rq import Retry

from storefront.services import notification_service
from storefront.services.mail_service import MailDeliveryError
from storefront.services.order_service import create_order
from storefront.workers.notifications import report_dead_letter, send_order_email


def _order(**kwargs):
    data = {
        "customer_name": "Tan Wei Ling",
        "customer_email": "weiling@example.com",
        "items": [{"product_name": "Modern Sofa", "price": 1299.99, "quantity": 2}],
        "subtotal": 2599.98,
        "total": 2599.98,
        "status": "processing",
    }
    data.update(kwargs)
    with patch("storefront.services.order_service.notify_order_confirmation"):
        return create_order(data)["order"]


def test_send_confirmation_email(db):
    order = _order()
    with patch("storefront.workers.notifications.mail_service.send", return_value=True) as send:
        assert send_order_email(order["id"], "confirmation") is True

    to, subject, html = send.call_args.args
    assert to == "weiling@example.com"
    assert subject == f"ESSEN - Order Confirmation #{order['reference_number']}"
    assert "Modern Sofa" in html
    assert "S$2,599.98" in html


def test_send_status_update_email(db):
    order = _order(status="shipped")
    with patch("storefront.workers.notifications.mail_service.send", return_value=True) as send:
        send_order_email(order["id"], "status_update")
    _, subject, html = send.call_args.args
    assert subject == f"ESSEN - Order #{order['reference_number']} Status Update"
    assert "on its way" in html


def test_missing_order_is_dropped(db):
    with patch("storefront.workers.notifications.mail_service.send") as send:
        assert send_order_email("nope", "confirmation") is False
    send.assert_not_called()


def test_unknown_kind_is_dropped(db):
    order = _order()
    with patch("storefront.workers.notifications.mail_service.send") as send:
        assert send_order_email(order["id"], "newsletter") is False
    send.assert_not_called()


def test_delivery_error_propagates_for_retry(db):
    order = _order()
    with patch(
        "storefront.workers.notifications.mail_service.send",
        side_effect=MailDeliveryError("Resend API error: 503"),
    ):
        with pytest.raises(MailDeliveryError):
            send_order_email(order["id"], "status_update")


def test_enqueue_uses_retry_and_failure_callback(app):
    queue = MagicMock()
    with patch("storefront.extensions.notification_queue", queue):
        assert notification_service.notify_status_update("order-1") is True

    args, kwargs = queue.enqueue.call_args
    assert args == (send_order_email, "order-1", "status_update")
    assert isinstance(kwargs["retry"], Retry)
    assert kwargs["retry"].max == 3
    assert kwargs["retry"].intervals == [30, 120, 300]
    assert kwargs["on_failure"] is report_dead_letter


def test_enqueue_without_queue_is_logged(app, caplog):
    with patch("storefront.extensions.notification_queue", None):
        with caplog.at_level(logging.WARNING):
            assert notification_service.notify_order_confirmation("order-1") is False
    assert "not initialised" in caplog.text


def test_dead_letter_after_last_retry(caplog):
    job = SimpleNamespace(id="job-1", retries_left=0, args=("order-1", "confirmation"))
    with caplog.at_level(logging.ERROR):
        report_dead_letter(job, None, MailDeliveryError, MailDeliveryError("boom"), None)
    assert "job-1 dead-lettered" in caplog.text


def test_retrying_failure_is_a_warning(caplog):
    job = SimpleNamespace(id="job-2", retries_left=2, args=())
    with caplog.at_level(logging.WARNING):
        report_dead_letter(job, None, MailDeliveryError, MailDeliveryError("boom"), None)
    records = [r for r in caplog.records if "job-2" in r.getMessage()]
    assert records and records[0].levelno == logging.WARNING
    assert "2 retries left" in records[0].getMessage()


def test_inline_failure_reaches_dead_letter(db, caplog):
    order = _order()
    with patch(
        "storefront.workers.notifications.mail_service.send",
        side_effect=MailDeliveryError("Resend API error: 500"),
    ):
        with caplog.at_level(logging.ERROR):
            assert notification_service.notify_status_update(order["id"]) is True
    assert "inline dead-lettered" in caplog.text
