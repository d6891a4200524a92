"""Public JSON catalog, checkout and the payment gateway webhook."""
import logging
from urllib.parse import parse_qsl

import httpx
from flask import current_app, jsonify, request

from storefront.blueprints.api import api_bp
from storefront.errors import NotFound
from storefront.models.order import OrderStatus
from storefront.services import payment_service
from storefront.services.category_service import list_categories
from storefront.services.order_service import (
    create_order,
    generate_reference_number,
    map_gateway_status,
    update_order_by_payment_id,
)
from storefront.services.product_service import get_product_by_slug, get_products

logger = logging.getLogger(__name__)

SIGNATURE_HEADERS = ("X-HITPAY-HMAC-SHA256", "HMAC-SHA256")


def _bool_arg(name):
    value = request.args.get(name)
    if value is None or value == "":
        return None
    return value.strip().lower() in ("1", "true", "yes")


@api_bp.route("/products")
def products_index():
    page = request.args.get("page", 1, type=int)
    per_page = min(request.args.get("per_page", 24, type=int), 100)
    pagination = get_products(
        category=request.args.get("category"),
        min_price=request.args.get("min_price", type=float),
        max_price=request.args.get("max_price", type=float),
        in_stock=_bool_arg("in_stock"),
        best_sellers=bool(_bool_arg("best_sellers")),
        sort=request.args.get("sort", "newest"),
        page=page,
        per_page=per_page,
    )
    return jsonify({
        "products": [p.to_dict() for p in pagination.items],
        "total": pagination.total,
        "page": pagination.page,
        "pages": pagination.pages,
    })


@api_bp.route("/products/<slug>")
def product_detail(slug):
    product = get_product_by_slug(slug)
    if product is None:
        raise NotFound("Product", slug)
    return jsonify(product.to_dict())


@api_bp.route("/categories")
def categories_index():
    return jsonify({"categories": [c.to_dict() for c in list_categories()]})


# ── Checkout ─────────────────────────────────────────────────


def _order_item(item):
    return {
        "product_id": item.get("id"),
        "product_name": item.get("name"),
        "product_slug": item.get("slug"),
        "price": float(item.get("price") or 0),
        "quantity": int(item.get("quantity") or 1),
        "image": item.get("image"),
    }


def _checkout_error(message, status=400):
    return jsonify({"success": False, "message": message}), status


@api_bp.route("/checkout", methods=["POST"])
def checkout():
    """Create a gateway payment request and the matching order."""
    data = request.get_json(silent=True) or {}
    items = data.get("items")
    if not items:
        return _checkout_error("Cart items are required")
    if not data.get("customer_email") or not data.get("customer_name"):
        return _checkout_error("Customer information is required")
    if not data.get("shipping_address"):
        return _checkout_error("Shipping address is required")
    try:
        order_items = [_order_item(i) for i in items]
        total = float(data.get("total") or 0)
    except (TypeError, ValueError, AttributeError):
        return _checkout_error("Invalid cart items")

    reference_number = generate_reference_number()
    app_url = current_app.config["APP_URL"].rstrip("/")
    try:
        payment = payment_service.create_payment({
            "amount": f"{total:.2f}",
            "currency": current_app.config["PAYMENT_CURRENCY"],
            "email": data["customer_email"],
            "name": data["customer_name"],
            "purpose": f"{current_app.config['STORE_NAME']} Order #{reference_number}",
            "reference_number": reference_number,
            "redirect_url": f"{app_url}/checkout/result",
            "webhook": f"{app_url}/api/payments/webhook",
        })
    except (payment_service.PaymentGatewayError, httpx.HTTPError):
        logger.exception("Payment request failed for %s", reference_number)
        return _checkout_error("Failed to create payment", 502)

    result = create_order({
        "reference_number": reference_number,
        "customer_name": data["customer_name"],
        "customer_email": data["customer_email"],
        "shipping_address": data["shipping_address"],
        "items": order_items,
        "subtotal": data.get("subtotal"),
        "shipping": data.get("shipping"),
        "tax": data.get("tax"),
        "total": total,
        "status": OrderStatus.PAYMENT_INITIATED.value,
        "payment_id": payment["id"],
        "payment_provider": "hitpay",
    })
    if not result["success"]:
        return _checkout_error(result["message"], 500)

    return jsonify({
        "success": True,
        "payment_url": payment["payment_url"],
        "reference_number": reference_number,
    })


# ── Payment webhook ──────────────────────────────────────────


def _webhook_payload(raw_body):
    payload = request.get_json(silent=True, force=True)
    if isinstance(payload, dict):
        return payload
    return dict(parse_qsl(raw_body.decode("utf-8", errors="replace")))


def _signature(payload):
    for header in SIGNATURE_HEADERS:
        if request.headers.get(header):
            return request.headers[header]
    return payload.get("hmac_signature") or payload.get("hmac")


def _payment_ids(payload):
    nested = payload.get("payment_request") or {}
    if not isinstance(nested, dict):
        nested = {}
    candidates = (
        payload.get("payment_request_id"),
        nested.get("id"),
        payload.get("payment_id"),
        payload.get("id"),
    )
    seen = []
    for candidate in candidates:
        if candidate and candidate not in seen:
            seen.append(candidate)
    return seen


@api_bp.route("/payments/webhook", methods=["POST"])
def payment_webhook():
    """Gateway callback. The signature covers the raw request body."""
    raw_body = request.get_data()
    payload = _webhook_payload(raw_body)

    signature = _signature(payload)
    if not signature:
        logger.warning("Webhook without signature rejected")
        return jsonify({"success": False, "message": "Missing signature"}), 401
    if not payment_service.verify_webhook_signature(signature, raw_body):
        logger.warning("Webhook with invalid signature rejected")
        return jsonify({"success": False, "message": "Invalid signature"}), 401

    nested = payload.get("payment_request") if isinstance(payload.get("payment_request"), dict) else {}
    raw_status = payload.get("status") or nested.get("status")
    payment_ids = _payment_ids(payload)
    if not payment_ids or not raw_status:
        return jsonify({"success": False, "message": "Missing payment information"}), 400

    status = map_gateway_status(raw_status)
    result = None
    for payment_id in payment_ids:
        result = update_order_by_payment_id(payment_id, status.value)
        if result["success"] or result["message"] != "Order not found with this payment ID":
            break

    if result["success"]:
        logger.info("Payment %s: order moved to %s", payment_ids[0], status.value)
    else:
        logger.error("Webhook for payment %s not applied: %s", payment_ids[0], result["message"])
    # Acknowledge so the gateway does not retry an update we cannot apply
    return jsonify({"success": True})
