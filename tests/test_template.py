"""Tests for the import template workbook."""
from io import BytesIO
from types import SimpleNamespace

from openpyxl import load_workbook

from storefront.importer.converter import convert_row
from storefront.importer.fields import FIELD_KEYS, suggest_mapping
from storefront.importer.spreadsheet import read_workbook
from storefront.importer.template import build_template, describe_fields

CATEGORIES = [
    SimpleNamespace(id=7, name="Outdoor", slug="outdoor", description="Garden furniture"),
    SimpleNamespace(id=8, name="Bedroom", slug="bedroom", description=""),
]


def test_template_sheets_and_header():
    workbook = load_workbook(BytesIO(build_template(CATEGORIES)))
    assert workbook.sheetnames == ["Instructions", "Products Template", "Categories"]

    template = workbook["Products Template"]
    header = [c.value for c in template[1]]
    assert header == list(FIELD_KEYS)
    assert template.freeze_panes == "A2"

    categories = [[c.value for c in row] for row in workbook["Categories"].iter_rows(min_row=2)]
    assert categories[0] == ["Outdoor", "outdoor", "Garden furniture"]

    instructions = [row[0].value for row in workbook["Instructions"].iter_rows()]
    assert "Available Categories:" in instructions
    assert "Bedroom" in instructions


def test_template_round_trips_through_the_importer():
    """A downloaded template imports cleanly with the suggested mapping."""
    parsed = read_workbook(build_template(CATEGORIES))
    assert parsed.ok
    assert parsed.selected_sheet == "Products Template"

    mapping = suggest_mapping(parsed.headers)
    raw = dict(zip(parsed.headers, parsed.rows[0]))
    draft, errors = convert_row(raw, mapping, CATEGORIES)

    assert errors == []
    assert draft.category == "Outdoor"
    assert draft.category_id == 7
    assert draft.slug == "modern-sofa"
    assert len(draft.variant.combinations) == 4
    assert draft.in_stock is True
    assert draft.is_weekly_best_seller is False


def test_describe_fields():
    fields = describe_fields()
    assert [f["key"] for f in fields] == list(FIELD_KEYS)
    assert fields[0] == {
        "key": "name",
        "label": "Product Name",
        "required": True,
        "description": "The name of the product",
    }
