"""Bulk product import: preview (convert + validate) and commit.

The review step between the two is held by the client. A row that failed
only on a slug collision may be overridden there; the commit then replaces
the existing product instead of inserting a new one.
"""
import logging

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from storefront.errors import DuplicateSlug, ValidationFailed
from storefront.extensions import db
from storefront.importer.converter import convert_row
from storefront.importer.draft import ImportRowResult, ProductDraft
from storefront.importer.fields import missing_required_fields, normalize_mapping
from storefront.importer.spreadsheet import row_to_dict
from storefront.importer.validation import check_required_fields, duplicate_slug_message
from storefront.services import product_service
from storefront.services.activity_service import log_activity
from storefront.services.category_service import list_categories

logger = logging.getLogger(__name__)


def validate_product(draft):
    """Required fields plus slug uniqueness against persisted products only.

    Returns ``(valid, errors)``.
    """
    errors = check_required_fields(draft)
    if draft.slug:
        try:
            if product_service.slug_exists(draft.slug):
                errors.append(duplicate_slug_message(draft.slug))
        except SQLAlchemyError:
            logger.exception("Slug lookup failed for %s", draft.slug)
            errors.append("Failed to validate slug uniqueness")
    return not errors, errors


def preview_import(headers, rows, mapping, categories=None):
    """Convert and validate every row for human review.

    Raises ``ValidationFailed`` when a required field has no column.
    """
    missing = missing_required_fields(mapping)
    if missing:
        raise ValidationFailed(missing)

    mapping = normalize_mapping(mapping)
    unknown = sorted(set(mapping.values()) - set(headers))
    if unknown:
        raise ValidationFailed([f'Column "{h}" is not in the sheet' for h in unknown])

    if categories is None:
        categories = list_categories()
    placeholder = current_app.config["PLACEHOLDER_IMAGE_URL"]

    results = []
    for index, row in enumerate(rows):
        original = row_to_dict(headers, row)
        draft, conversion_errors = convert_row(original, mapping, categories, placeholder)
        _, validation_errors = validate_product(draft)
        errors = conversion_errors + validation_errors
        results.append(
            ImportRowResult(
                index=index,
                original=original,
                draft=draft,
                errors=errors,
                valid=not errors,
            )
        )

    valid_count = sum(1 for r in results if r.valid)
    logger.info("Import preview: %d rows, %d valid", len(results), valid_count)
    return results


def _commit_one(draft):
    """Insert or, for an overridden row, replace. Returns (message, updated)."""
    if draft.overwrite and product_service.slug_exists(draft.slug):
        product_service.replace_product(draft)
        return f'Product "{draft.name}" updated successfully', True
    product_service.insert_product(draft)
    return f'Product "{draft.name}" imported successfully', False


def import_products(drafts, actor):
    """Persist reviewed drafts one at a time, in order.

    A failing row is recorded and the batch continues. The batch counts as
    a success when at least one row was saved.
    """
    if actor is None or not actor.is_staff:
        return {"success": False, "message": "Unauthorized", "results": []}

    try:
        drafts = [d if isinstance(d, ProductDraft) else ProductDraft.from_dict(d) for d in drafts]
    except (TypeError, ValueError, AttributeError) as e:
        logger.warning("Rejected malformed import payload: %s", e)
        return {
            "success": False,
            "message": f"Failed to import products: {e}",
            "results": [],
        }

    results = []
    success_count = 0
    failure_count = 0
    updated_count = 0

    for index, draft in enumerate(drafts):
        try:
            message, updated = _commit_one(draft)
        except DuplicateSlug:
            failure_count += 1
            results.append({
                "index": index,
                "name": draft.name,
                "success": False,
                "message": f'Product with slug "{draft.slug}" already exists',
            })
            continue
        except Exception as e:
            db.session.rollback()
            logger.exception("Error importing product %s", draft.name)
            failure_count += 1
            results.append({
                "index": index,
                "name": draft.name,
                "success": False,
                "message": f"Failed to import product: {getattr(e, 'message', e)}",
            })
            continue

        success_count += 1
        if updated:
            updated_count += 1
        results.append({"index": index, "name": draft.name, "success": True, "message": message})

    created_count = success_count - updated_count
    message = (
        f"Import completed: {created_count} products imported successfully, "
        f"{updated_count} overwritten, {failure_count} failed."
    )
    log_activity(
        actor,
        "import_products",
        f"Imported {success_count} of {len(drafts)} products via spreadsheet",
        entity_type="product",
    )
    logger.info(message)

    return {
        "success": success_count > 0,
        "message": message,
        "success_count": success_count,
        "failure_count": failure_count,
        "updated_count": updated_count,
        "results": results,
    }
