"""Tests for import preview, validation and commit."""
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from storefront.auth import ActorContext
from storefront.errors import ValidationFailed
from storefront.importer.draft import ProductDraft
from storefront.models.activity_log import ActivityLog
from storefront.models.product import Product
from storefront.services import product_service
from storefront.services.import_service import (
    import_products,
    preview_import,
    validate_product,
)

HEADERS = ["name", "category", "description", "price"]
MAPPING = {"name": "name", "category": "category", "description": "description", "price": "price"}


def _draft(name="Sofa", slug=None, **kwargs):
    defaults = {
        "category": "Living Room",
        "description": "Comfortable",
        "price": 999.0,
    }
    defaults.update(kwargs)
    return ProductDraft(name=name, slug=slug or name.lower(), **defaults)


def test_validate_product_required_fields(db):
    valid, errors = validate_product(ProductDraft())
    assert not valid
    assert errors == [
        "Product name is required",
        "Slug is required",
        "Category is required",
        "Description is required",
    ]


def test_validate_product_existing_slug(db, actor):
    import_products([_draft()], actor)
    valid, errors = validate_product(_draft())
    assert not valid
    assert errors == ['A product with the slug "sofa" already exists']


def test_validate_product_lookup_failure(db):
    with patch(
        "storefront.services.import_service.product_service.slug_exists",
        side_effect=OperationalError("SELECT", {}, Exception("db down")),
    ):
        valid, errors = validate_product(_draft())
    assert not valid
    assert errors == ["Failed to validate slug uniqueness"]


def test_preview_requires_mapped_required_fields(db, categories):
    with pytest.raises(ValidationFailed) as exc:
        preview_import(HEADERS, [], {"name": "name"})
    assert "Category is required but not mapped to any column" in exc.value.errors


def test_preview_rejects_mapping_to_absent_column(db, categories):
    with pytest.raises(ValidationFailed) as exc:
        preview_import(HEADERS, [], dict(MAPPING, features="Features"))
    assert exc.value.errors == ['Column "Features" is not in the sheet']


def test_preview_end_to_end(app, db, categories):
    rows = [
        ["Sofa", "Living Room", "Comfortable", 999],
        ["Lamp", "Lighting", "Bright", None],
        ["", "Bedroom", "", None],
    ]
    results = preview_import(HEADERS, rows, MAPPING)

    assert [r.index for r in results] == [0, 1, 2]
    sofa, lamp, blank = results
    assert sofa.valid and sofa.errors == []
    assert sofa.draft.slug == "sofa"
    assert sofa.draft.category_id == categories[0].id
    assert sofa.draft.images == [app.config["PLACEHOLDER_IMAGE_URL"]]
    assert sofa.original == {"name": "Sofa", "category": "Living Room", "description": "Comfortable", "price": 999}

    assert not lamp.valid
    assert lamp.errors == ['Category "Lighting" not found in the system']

    assert not blank.valid
    assert "Product name is required" in blank.errors
    assert "Slug is required" in blank.errors
    assert "Description is required" in blank.errors


def test_preview_does_not_catch_duplicates_within_batch(db, categories):
    rows = [
        ["Sofa", "Living Room", "First", 1],
        ["Sofa", "Living Room", "Second", 2],
    ]
    results = preview_import(HEADERS, rows, MAPPING)
    assert all(r.valid for r in results)


def test_commit_rejects_within_batch_duplicate(db, categories, actor):
    drafts = [_draft(description="First"), _draft(description="Second")]
    report = import_products(drafts, actor)

    assert report["success"] is True
    assert report["success_count"] == 1
    assert report["failure_count"] == 1
    assert report["results"][1] == {
        "index": 1,
        "name": "Sofa",
        "success": False,
        "message": 'Product with slug "sofa" already exists',
    }
    assert Product.query.count() == 1
    assert Product.query.one().description == "First"


def test_commit_reports_constraint_failure_that_is_not_a_slug_clash(db, categories, actor):
    report = import_products([_draft(name=None, slug="sofa")], actor)

    assert report["success"] is False
    assert report["failure_count"] == 1
    message = report["results"][0]["message"]
    assert "already exists" not in message
    assert message == (
        "Failed to import product: Failed to save product: a required value is missing or invalid"
    )
    assert Product.query.count() == 0


def test_commit_reports_rows_in_input_order(db, categories, actor):
    drafts = [_draft("Sofa"), _draft("Bed", category="Bedroom"), _draft("Chair")]
    report = import_products(drafts, actor)
    assert [r["index"] for r in report["results"]] == [0, 1, 2]
    assert [r["name"] for r in report["results"]] == ["Sofa", "Bed", "Chair"]
    assert report["message"] == (
        "Import completed: 3 products imported successfully, 0 overwritten, 0 failed."
    )


def test_commit_empty_batch(db, actor):
    report = import_products([], actor)
    assert report["success"] is False
    assert report["success_count"] == 0
    assert report["results"] == []


@pytest.mark.parametrize("who", [None, ActorContext("c-1", "shopper@example.com", "customer")])
def test_commit_requires_staff(db, who):
    report = import_products([_draft()], who)
    assert report == {"success": False, "message": "Unauthorized", "results": []}
    assert Product.query.count() == 0


def test_commit_accepts_draft_dicts(db, categories, actor):
    report = import_products([_draft().to_dict()], actor)
    assert report["success_count"] == 1
    assert Product.query.one().slug == "sofa"


def test_commit_malformed_payload(db, actor):
    report = import_products([{"name": "Sofa", "variant": {"materials": [{"bogus": 1}]}}], actor)
    assert report["success"] is False
    assert report["message"].startswith("Failed to import products:")
    assert report["results"] == []


def test_commit_logs_one_aggregate_activity(db, categories, actor):
    import_products([_draft("Sofa"), _draft("Chair")], actor)
    entries = ActivityLog.query.all()
    assert len(entries) == 1
    assert entries[0].action == "import_products"
    assert entries[0].details == "Imported 2 of 2 products via spreadsheet"
    assert entries[0].user_email == actor.email


def test_super_admin_import_is_not_logged(db, categories):
    admin = ActorContext("sa-1", "owner@essen.sg", "super_admin")
    report = import_products([_draft()], admin)
    assert report["success"] is True
    assert ActivityLog.query.count() == 0


def test_unexpected_row_failure_continues_batch(db, categories, actor):
    real_insert = product_service.insert_product

    def flaky(draft):
        if draft.name == "Bed":
            raise RuntimeError("disk full")
        return real_insert(draft)

    with patch("storefront.services.import_service.product_service.insert_product", side_effect=flaky):
        report = import_products([_draft("Sofa"), _draft("Bed"), _draft("Chair")], actor)

    assert report["success_count"] == 2
    assert report["failure_count"] == 1
    assert report["results"][1]["message"] == "Failed to import product: disk full"
    assert {p.slug for p in Product.query.all()} == {"sofa", "chair"}


# ── Review-time override ─────────────────────────────────────


def test_override_replaces_existing_product(db, categories, actor):
    import_products([_draft(description="Old", price=100.0)], actor)
    original = Product.query.one()
    original_id, original_created = original.id, original.created_at
    original.images = ["https://cdn/real-photo.jpg"]
    db.session.commit()

    results = preview_import(HEADERS, [["Sofa", "Living Room", "New", 150]], MAPPING)
    row = results[0]
    assert not row.valid
    assert row.can_override

    assert row.override_duplicate_slug() is True
    assert row.valid and row.errors == []
    assert row.draft.overwrite is True

    report = import_products([row.draft], actor)
    assert report["updated_count"] == 1
    assert report["results"][0]["message"] == 'Product "Sofa" updated successfully'
    assert "1 overwritten" in report["message"]

    product = Product.query.one()
    assert product.id == original_id
    assert product.created_at == original_created
    assert product.description == "New"
    assert product.price == 150.0
    assert product.images == ["https://cdn/real-photo.jpg"]


def test_undo_override_restores_errors(db, categories, actor):
    import_products([_draft()], actor)
    row = preview_import(HEADERS, [["Sofa", "Living Room", "New", 1]], MAPPING)[0]

    row.override_duplicate_slug()
    assert row.undo_override() is True
    assert not row.valid
    assert row.errors == ['A product with the slug "sofa" already exists']
    assert row.draft.overwrite is False
    assert row.undo_override() is False


def test_override_not_offered_with_other_errors(db, categories, actor):
    import_products([_draft()], actor)
    row = preview_import(HEADERS, [["Sofa", "Living Room", "", 1]], MAPPING)[0]
    assert not row.can_override
    assert row.override_duplicate_slug() is False
    assert row.draft.overwrite is False
