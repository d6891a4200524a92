"""HitPay payment gateway client."""
import hashlib
import hmac
import logging
import httpx
from flask import current_app

logger = logging.getLogger(__name__)


class PaymentGatewayError(RuntimeError):
    pass


def _headers():
    return {
        "X-BUSINESS-API-KEY": current_app.config["HITPAY_API_KEY"],
        "X-Requested-With": "XMLHttpRequest",
    }


def _url(path):
    return f"{current_app.config['HITPAY_API_URL'].rstrip('/')}/{path}"


def create_payment(payment_request):
    """Create a payment request.

    ``payment_request`` holds amount, currency, email, name, purpose,
    reference_number, redirect_url and webhook. Returns
    ``{"payment_url", "id", "status"}``.
    """
    resp = httpx.post(
        _url("payment-requests"),
        headers=_headers(),
        data={k: str(v) for k, v in payment_request.items() if v is not None},
        timeout=20,
    )
    if resp.status_code >= 400:
        logger.error("HitPay API error %s: %s", resp.status_code, resp.text[:500])
        raise PaymentGatewayError(f"HitPay API error: {resp.status_code}")
    data = resp.json()
    return {
        "payment_url": data.get("url"),
        "id": data.get("id"),
        "status": data.get("status"),
    }


def get_payment_status(payment_id):
    resp = httpx.get(_url(f"payment-requests/{payment_id}"), headers=_headers(), timeout=20)
    if resp.status_code >= 400:
        raise PaymentGatewayError(f"HitPay API error: {resp.status_code}")
    return resp.json()


def compute_signature(raw_body):
    salt = current_app.config["HITPAY_WEBHOOK_SALT"].encode()
    if isinstance(raw_body, str):
        raw_body = raw_body.encode()
    return hmac.new(salt, raw_body, hashlib.sha256).hexdigest()


def verify_webhook_signature(signature, raw_body):
    """HMAC-SHA256 of the raw body with the webhook salt, compared in constant time."""
    if not signature or not current_app.config.get("HITPAY_WEBHOOK_SALT"):
        return False
    expected = compute_signature(raw_body)
    return hmac.compare_digest(signature.lower(), expected.lower())
