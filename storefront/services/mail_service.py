"""Outbound e-mail through the Resend HTTP API."""
import logging
import httpx
from flask import current_app

logger = logging.getLogger(__name__)

RESEND_URL = "https://api.resend.com/emails"


class MailDeliveryError(RuntimeError):
    pass


def is_configured():
    return bool(current_app.config.get("RESEND_API_KEY"))


def send(to, subject, html):
    """Send one HTML message.

    Returns False without sending when no API key is configured. Raises
    ``MailDeliveryError`` when the provider rejects the message so a queued
    job can be retried.
    """
    if not is_configured():
        logger.warning("RESEND_API_KEY not set, skipping mail to %s: %s", to, subject)
        return False

    try:
        resp = httpx.post(
            RESEND_URL,
            headers={"Authorization": f"Bearer {current_app.config['RESEND_API_KEY']}"},
            json={
                "from": current_app.config["MAIL_FROM"],
                "to": [to],
                "subject": subject,
                "html": html,
            },
            timeout=15,
        )
    except httpx.HTTPError as e:
        raise MailDeliveryError(f"Mail transport error: {e}") from e

    if resp.status_code >= 400:
        logger.error("Resend API error %s: %s", resp.status_code, resp.text[:500])
        raise MailDeliveryError(f"Resend API error: {resp.status_code}")
    return True
