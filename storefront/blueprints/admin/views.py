"""Staff JSON endpoints: product import and creation, orders, activity log, uploads."""
import logging
from datetime import datetime
from io import BytesIO

import httpx
from botocore.exceptions import BotoCoreError, ClientError
from flask import jsonify, request, send_file

from storefront.auth import current_actor, staff_required
from storefront.blueprints.admin import admin_bp
from storefront.errors import NotFound, ParseFailed, ValidationFailed
from storefront.importer.converter import slugify
from storefront.importer.draft import ProductDraft
from storefront.importer.spreadsheet import read_sheet, read_workbook
from storefront.importer.fields import suggest_mapping
from storefront.importer.template import build_template, describe_fields
from storefront.importer.validation import check_required_fields
from storefront.services import image_service, payment_service, storage_service
from storefront.services.activity_service import (
    count_activity_logs,
    get_activity_logs,
    log_activity,
)
from storefront.services.category_service import create_category, list_categories
from storefront.services.import_service import import_products, preview_import
from storefront.services.order_service import (
    get_order,
    get_order_statistics,
    list_orders,
    map_gateway_status,
    update_order_status,
)
from storefront.services.product_service import create_product

logger = logging.getLogger(__name__)

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
LOG_FILTERS = ("user_id", "action", "entity_id", "entity_type")


def _json_body():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ParseFailed("Request body must be a JSON object")
    return data


def _uploaded_bytes():
    f = request.files.get("file")
    if f is None or not f.filename:
        raise ParseFailed("No file uploaded")
    return f.filename, f.read(), f.mimetype


# ── Product import ───────────────────────────────────────────


@admin_bp.route("/import/upload", methods=["POST"])
@staff_required
def import_upload():
    """Parse a workbook and suggest a column mapping for its headers."""
    filename, data, _ = _uploaded_bytes()
    sheet = request.form.get("sheet")
    result = read_sheet(data, sheet) if sheet else read_workbook(data)
    logger.info(
        "Parsed %s: sheet=%s rows=%d errors=%d",
        filename, result.selected_sheet, len(result.rows), len(result.errors),
    )

    body = result.to_dict()
    body["success"] = result.ok
    body["mapping"] = suggest_mapping(result.headers)
    body["fields"] = describe_fields()
    return jsonify(body), 200 if result.ok else 400


@admin_bp.route("/import/preview", methods=["POST"])
@staff_required
def import_preview():
    data = _json_body()
    headers = data.get("headers") or []
    rows = data.get("rows") or []
    mapping = data.get("mapping") or {}
    if not isinstance(headers, list):
        raise ParseFailed("headers must be a list")
    if not isinstance(rows, list) or not all(isinstance(row, list) for row in rows):
        raise ParseFailed("rows must be a list of lists")
    if not isinstance(mapping, dict):
        raise ParseFailed("mapping must be an object")

    results = preview_import(headers, rows, mapping)
    valid_count = sum(1 for r in results if r.valid)
    return jsonify({
        "success": True,
        "results": [r.to_dict() for r in results],
        "valid_count": valid_count,
        "invalid_count": len(results) - valid_count,
    })


@admin_bp.route("/import/commit", methods=["POST"])
@staff_required
def import_commit():
    data = _json_body()
    products = data.get("products")
    if not isinstance(products, list):
        raise ParseFailed("products must be a list")
    return jsonify(import_products(products, current_actor()))


@admin_bp.route("/import/template")
@staff_required
def import_template():
    content = build_template(list_categories())
    return send_file(
        BytesIO(content),
        mimetype=XLSX_MIMETYPE,
        as_attachment=True,
        download_name="product-import-template.xlsx",
    )


# ── Products ─────────────────────────────────────────────────


@admin_bp.route("/products", methods=["POST"])
@staff_required
def products_create():
    data = _json_body()
    try:
        draft = ProductDraft.from_dict(data)
    except (TypeError, ValueError, AttributeError):
        raise ParseFailed("Invalid product payload")
    if not draft.slug and draft.name:
        draft.slug = slugify(draft.name)

    errors = check_required_fields(draft)
    if errors:
        raise ValidationFailed(errors)

    result = create_product(draft, current_actor())
    return jsonify(result), 201 if result["success"] else 400


# ── Orders ───────────────────────────────────────────────────


@admin_bp.route("/orders")
@staff_required
def orders_index():
    page = request.args.get("page", 1, type=int)
    per_page = min(request.args.get("per_page", 20, type=int), 100)
    pagination = list_orders(page=page, per_page=per_page, status=request.args.get("status"))
    return jsonify({
        "orders": [o.to_dict() for o in pagination.items],
        "total": pagination.total,
        "page": pagination.page,
        "pages": pagination.pages,
        "stats": get_order_statistics(),
    })


@admin_bp.route("/orders/<order_id>")
@staff_required
def order_detail(order_id):
    order = get_order(order_id)
    if order is None:
        raise NotFound("Order", order_id)
    return jsonify(order.to_dict())


@admin_bp.route("/orders/<order_id>/status", methods=["POST"])
@staff_required
def order_status(order_id):
    data = _json_body()
    status = data.get("status")
    if not status:
        raise ParseFailed("status is required")

    result = update_order_status(
        order_id,
        status,
        tracking_number=data.get("tracking_number"),
        notes=data.get("notes"),
        actor=current_actor(),
    )
    if result["success"]:
        return jsonify(result)
    if result["message"] == "Order not found":
        return jsonify(result), 404
    return jsonify(result), 400


@admin_bp.route("/orders/<order_id>/sync-payment", methods=["POST"])
@staff_required
def order_sync_payment(order_id):
    """Pull the payment status from the gateway when a webhook was missed."""
    order = get_order(order_id)
    if order is None:
        raise NotFound("Order", order_id)
    if not order.payment_id:
        raise ParseFailed("Order has no payment to sync")

    try:
        payment = payment_service.get_payment_status(order.payment_id)
    except (payment_service.PaymentGatewayError, httpx.HTTPError):
        logger.exception("Payment lookup failed for order %s", order.reference_number)
        return jsonify({"success": False, "message": "Failed to fetch payment status"}), 502

    status = map_gateway_status(payment.get("status"))
    result = update_order_status(order.id, status.value, actor=current_actor())
    return jsonify(result), 200 if result["success"] else 400


# ── Activity log ─────────────────────────────────────────────


def _parse_date(name):
    value = request.args.get(name)
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        raise ParseFailed(f"{name} must be an ISO date")


@admin_bp.route("/logs")
@staff_required
def activity_logs():
    filters = {k: request.args[k] for k in LOG_FILTERS if request.args.get(k)}
    for name in ("from_date", "to_date"):
        parsed = _parse_date(name)
        if parsed is not None:
            filters[name] = parsed

    limit = min(request.args.get("limit", 50, type=int), 200)
    skip = max(request.args.get("skip", 0, type=int), 0)
    logs = get_activity_logs(limit=limit, skip=skip, filters=filters)
    return jsonify({
        "logs": [entry.to_dict() for entry in logs],
        "total": count_activity_logs(filters),
    })


# ── Categories ───────────────────────────────────────────────


@admin_bp.route("/categories")
@staff_required
def categories_index():
    return jsonify({"categories": [c.to_dict() for c in list_categories()]})


@admin_bp.route("/categories", methods=["POST"])
@staff_required
def categories_create():
    result = create_category(_json_body(), current_actor())
    return jsonify(result), 201 if result["success"] else 400


# ── Uploads ──────────────────────────────────────────────────


@admin_bp.route("/uploads", methods=["POST"])
@staff_required
def upload_image():
    filename, data, _ = _uploaded_bytes()
    try:
        clean, content_type = image_service.validate_image(data)
    except ValueError as e:
        return jsonify({"success": False, "message": str(e)}), 400

    try:
        url = storage_service.upload(clean, filename, content_type)
    except (BotoCoreError, ClientError):
        logger.exception("Upload of %s failed", filename)
        return jsonify({"success": False, "message": "Failed to upload file"}), 502

    log_activity(current_actor(), "upload_image", f"Uploaded image: {filename}", entity_type="image")
    return jsonify({"success": True, "url": url}), 201


@admin_bp.route("/uploads", methods=["DELETE"])
@staff_required
def delete_image():
    data = _json_body()
    urls = data.get("urls")
    if urls is not None:
        if not isinstance(urls, list) or not all(isinstance(u, str) for u in urls):
            raise ParseFailed("urls must be a list of strings")
        failed = storage_service.delete_many(urls)
        if failed:
            return jsonify({"success": False, "message": "Failed to delete some files", "failed": failed}), 502
        return jsonify({"success": True, "message": f"{len(urls)} files deleted"})

    url = data.get("url")
    if not url:
        raise ParseFailed("url is required")
    if not storage_service.delete(url):
        return jsonify({"success": False, "message": "Failed to delete file"}), 502
    return jsonify({"success": True, "message": "File deleted"})
