"""Tests for workbook parsing."""
from storefront.importer.spreadsheet import default_sheet, read_sheet, read_workbook, row_to_dict

HEADER = ["name", "category", "description", "price"]


def test_reads_second_sheet_by_default(workbook_bytes):
    data = workbook_bytes(
        ("Instructions", [["Read me first"]]),
        ("Products Template", [HEADER, ["Sofa", "Living Room", "Soft", 999]]),
    )
    result = read_workbook(data)
    assert result.ok
    assert result.sheets == ["Instructions", "Products Template"]
    assert result.selected_sheet == "Products Template"
    assert result.headers == HEADER
    assert result.rows == [["Sofa", "Living Room", "Soft", 999]]


def test_single_sheet_is_selected(workbook_bytes):
    data = workbook_bytes(("Sheet1", [HEADER, ["Sofa", "Living Room", "Soft", None]]))
    result = read_workbook(data)
    assert result.selected_sheet == "Sheet1"
    assert result.rows[0][:3] == ["Sofa", "Living Room", "Soft"]


def test_blank_rows_are_skipped_and_rows_padded(workbook_bytes):
    data = workbook_bytes(
        ("Products", [
            [" name ", "category", "description"],
            [None, None, None],
            ["Sofa"],
            ["", "  ", None],
            ["Bed", "Bedroom", "Queen size"],
        ])
    )
    result = read_workbook(data)
    assert result.headers == ["name", "category", "description"]
    assert result.rows == [["Sofa", None, None], ["Bed", "Bedroom", "Queen size"]]


def test_header_only_sheet_is_an_error(workbook_bytes):
    result = read_workbook(workbook_bytes(("Products", [HEADER])))
    assert not result.ok
    assert result.headers == []
    assert result.rows == []
    assert result.errors == [
        "Excel sheet must contain at least a header row and one data row"
    ]
    assert result.sheets == ["Products"]


def test_unreadable_bytes_do_not_raise():
    result = read_workbook(b"this is not a workbook")
    assert not result.ok
    assert result.errors[0].startswith("Failed to parse Excel file:")
    assert result.sheets == []


def test_read_named_sheet(workbook_bytes):
    data = workbook_bytes(
        ("Instructions", [["notes"]]),
        ("Template", [["x"], [1]]),
        ("Mine", [HEADER, ["Chair", "Dining Room", "Oak", 120]]),
    )
    result = read_sheet(data, "Mine")
    assert result.ok
    assert result.selected_sheet == "Mine"
    assert result.rows == [["Chair", "Dining Room", "Oak", 120]]


def test_missing_named_sheet(workbook_bytes):
    data = workbook_bytes(("Products", [HEADER, ["a", "b", "c", 1]]))
    result = read_sheet(data, "Nope")
    assert result.errors == ['Sheet "Nope" not found in the Excel file']
    assert result.sheets == ["Products"]


def test_default_sheet():
    assert default_sheet([]) is None
    assert default_sheet(["Only"]) == "Only"
    assert default_sheet(["Instructions", "Products", "Categories"]) == "Products"


def test_row_to_dict_skips_unnamed_columns():
    assert row_to_dict(["name", "", "price"], ["Sofa", "junk", 10]) == {
        "name": "Sofa",
        "price": 10,
    }
    assert row_to_dict(["name", "price"], ["Sofa"]) == {"name": "Sofa", "price": None}
