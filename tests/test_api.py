"""Tests for the public catalog, checkout and payment webhook."""
import hashlib
import hmac
import json
from unittest.mock import patch

import httpx

import storefront.extensions as ext
from storefront.importer.draft import ProductDraft
from storefront.models.order import Order
from storefront.services.order_service import create_order
from storefront.services.product_service import insert_product

CHECKOUT = {
    "items": [{"id": 1, "name": "Modern Sofa", "slug": "modern-sofa", "price": 1299.99, "quantity": 1}],
    "customer_email": "weiling@example.com",
    "customer_name": "Tan Wei Ling",
    "shipping_address": {"full_name": "Tan Wei Ling", "address_line1": "1 Orchard Road"},
    "subtotal": 1299.99,
    "shipping": 0,
    "tax": 0,
    "total": 1299.99,
}


def _sign(body, salt="test-salt"):
    return hmac.new(salt.encode(), body, hashlib.sha256).hexdigest()


def _product(name, category="Living Room", price=100.0, **kwargs):
    slug = name.lower().replace(" ", "-")
    return insert_product(ProductDraft(name=name, slug=slug, category=category, price=price, **kwargs))


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["db"] == "ok"
    assert data["redis"] == "not configured"


def test_health_does_not_leak_internal_errors(client, monkeypatch):
    def boom(*args, **kwargs):
        raise RuntimeError("database password leaked")

    monkeypatch.setattr(ext.db.session, "execute", boom)

    resp = client.get("/health")
    assert resp.status_code == 503
    data = resp.get_json()
    assert data["db"] == "error"
    assert "password" not in str(data).lower()


def test_product_listing_filters(client, categories):
    _product("Sofa", price=1000.0)
    _product("Bed", category="Bedroom", price=500.0, in_stock=False)
    _product("Armchair", price=300.0, is_weekly_best_seller=True)

    body = client.get("/api/products?category=living-room&sort=price_asc").get_json()
    assert [p["slug"] for p in body["products"]] == ["armchair", "sofa"]

    body = client.get("/api/products?in_stock=false").get_json()
    assert [p["slug"] for p in body["products"]] == ["bed"]

    body = client.get("/api/products?best_sellers=true").get_json()
    assert [p["slug"] for p in body["products"]] == ["armchair"]

    body = client.get("/api/products?min_price=400&max_price=900").get_json()
    assert body["total"] == 1


def test_product_detail(client, db):
    _product("Sofa")
    assert client.get("/api/products/sofa").get_json()["name"] == "Sofa"
    resp = client.get("/api/products/nope")
    assert resp.status_code == 404
    assert resp.get_json() == {"success": False, "message": "Product not found"}


def test_categories(client, categories):
    body = client.get("/api/categories").get_json()
    assert [c["name"] for c in body["categories"]] == ["Living Room", "Bedroom"]


def test_checkout_creates_payment_and_order(client, db):
    payment = {"payment_url": "https://pay.example/abc", "id": "pr-1", "status": "pending"}
    with patch("storefront.blueprints.api.views.payment_service.create_payment", return_value=payment) as create:
        resp = client.post("/api/checkout", json=CHECKOUT)

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["payment_url"] == "https://pay.example/abc"

    request_data = create.call_args.args[0]
    assert request_data["amount"] == "1299.99"
    assert request_data["currency"] == "SGD"
    assert request_data["reference_number"] == body["reference_number"]

    order = Order.query.one()
    assert order.status == "payment_initiated"
    assert order.payment_id == "pr-1"
    assert order.payment_provider == "hitpay"
    assert order.items[0]["product_name"] == "Modern Sofa"


def test_checkout_validation(client, db):
    resp = client.post("/api/checkout", json=dict(CHECKOUT, items=[]))
    assert resp.status_code == 400
    assert resp.get_json()["message"] == "Cart items are required"

    resp = client.post("/api/checkout", json=dict(CHECKOUT, customer_email=""))
    assert resp.get_json()["message"] == "Customer information is required"

    resp = client.post("/api/checkout", json=dict(CHECKOUT, shipping_address=None))
    assert resp.get_json()["message"] == "Shipping address is required"
    assert Order.query.count() == 0


def test_checkout_gateway_failure(client, db):
    with patch(
        "storefront.blueprints.api.views.payment_service.create_payment",
        side_effect=httpx.ConnectError("unreachable"),
    ):
        resp = client.post("/api/checkout", json=CHECKOUT)
    assert resp.status_code == 502
    assert Order.query.count() == 0


def test_webhook_marks_order_paid(client, db):
    order = create_order({"customer_name": "A", "customer_email": "a@example.com",
                          "status": "payment_initiated", "payment_id": "pr-9"})["order"]
    body = json.dumps({"payment_request_id": "pr-9", "payment_id": "p-1", "status": "completed"}).encode()

    resp = client.post(
        "/api/payments/webhook",
        data=body,
        content_type="application/json",
        headers={"X-HITPAY-HMAC-SHA256": _sign(body)},
    )
    assert resp.status_code == 200
    assert Order.query.filter_by(id=order["id"]).one().status == "paid"


def test_webhook_form_payload_with_header_signature(client, db):
    create_order({"customer_name": "A", "customer_email": "a@example.com",
                  "status": "payment_initiated", "payment_id": "pr-6"})
    body = b"payment_request_id=pr-6&status=expired"
    resp = client.post(
        "/api/payments/webhook",
        data=body,
        content_type="application/x-www-form-urlencoded",
        headers={"X-HITPAY-HMAC-SHA256": _sign(body)},
    )
    assert resp.status_code == 200
    assert Order.query.one().status == "cancelled"


def test_webhook_rejects_bad_signature(client, db):
    body = json.dumps({"payment_request_id": "pr-9", "status": "completed"}).encode()
    resp = client.post(
        "/api/payments/webhook",
        data=body,
        content_type="application/json",
        headers={"X-HITPAY-HMAC-SHA256": _sign(body, "wrong-salt")},
    )
    assert resp.status_code == 401

    resp = client.post("/api/payments/webhook", data=body, content_type="application/json")
    assert resp.status_code == 401
    assert resp.get_json()["message"] == "Missing signature"


def test_webhook_missing_payment_information(client, db):
    body = json.dumps({"status": "completed"}).encode()
    resp = client.post(
        "/api/payments/webhook",
        data=body,
        content_type="application/json",
        headers={"X-HITPAY-HMAC-SHA256": _sign(body)},
    )
    assert resp.status_code == 400


def test_webhook_unknown_payment_is_acknowledged(client, db):
    body = json.dumps({"payment_request_id": "pr-404", "status": "completed"}).encode()
    resp = client.post(
        "/api/payments/webhook",
        data=body,
        content_type="application/json",
        headers={"X-HITPAY-HMAC-SHA256": _sign(body)},
    )
    assert resp.status_code == 200
