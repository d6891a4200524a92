"""Workbook parsing for product imports.

Pure parsing: no business rules. Every failure is reported through
``SpreadsheetResult.errors``; nothing here raises to the caller.
"""
import logging
from dataclasses import dataclass, field
from io import BytesIO
from typing import Any, Optional

from openpyxl import load_workbook

logger = logging.getLogger(__name__)


@dataclass
class SpreadsheetResult:
    headers: list[str] = field(default_factory=list)
    rows: list[list[Any]] = field(default_factory=list)
    sheets: list[str] = field(default_factory=list)
    selected_sheet: Optional[str] = None
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self):
        return not self.errors

    def to_dict(self):
        return {
            "headers": self.headers,
            "rows": self.rows,
            "sheets": self.sheets,
            "selected_sheet": self.selected_sheet,
            "errors": self.errors,
        }


def _open(data):
    return load_workbook(BytesIO(data), read_only=True, data_only=True)


def _header_text(value):
    if value is None:
        return ""
    return str(value).strip()


def _is_blank(row):
    return all(v is None or (isinstance(v, str) and not v.strip()) for v in row)


def _extract(worksheet):
    """Return (headers, rows) with fully blank rows skipped."""
    values = [list(r) for r in worksheet.iter_rows(values_only=True) if not _is_blank(r)]
    if not values:
        return [], []
    headers = [_header_text(v) for v in values[0]]
    while headers and not headers[-1]:
        headers.pop()
    width = len(headers)
    rows = []
    for raw in values[1:]:
        row = raw[:width] + [None] * (width - len(raw))
        rows.append(row)
    return headers, rows


def default_sheet(sheets):
    """The second sheet when there are several (the first holds instructions)."""
    if not sheets:
        return None
    return sheets[1] if len(sheets) > 1 else sheets[0]


def read_workbook(data):
    """Parse a workbook, reading its default sheet."""
    result = SpreadsheetResult()
    try:
        workbook = _open(data)
    except Exception as e:
        logger.warning("Workbook could not be opened: %s", e)
        result.errors.append(f"Failed to parse Excel file: {e}")
        return result

    try:
        result.sheets = list(workbook.sheetnames)
        if not result.sheets:
            result.errors.append("Excel file contains no sheets")
            return result

        result.selected_sheet = default_sheet(result.sheets)
        headers, rows = _extract(workbook[result.selected_sheet])
        if not headers or not rows:
            result.errors.append(
                "Excel sheet must contain at least a header row and one data row"
            )
            return result

        result.headers, result.rows = headers, rows
        return result
    except Exception as e:
        logger.warning("Workbook could not be read: %s", e)
        result.headers, result.rows = [], []
        result.errors.append(f"Failed to parse Excel file: {e}")
        return result
    finally:
        workbook.close()


def read_sheet(data, sheet_name):
    """Parse one named sheet of a workbook."""
    result = SpreadsheetResult(selected_sheet=sheet_name)
    try:
        workbook = _open(data)
    except Exception as e:
        logger.warning("Workbook could not be opened: %s", e)
        result.errors.append(f"Failed to parse Excel file: {e}")
        return result

    try:
        result.sheets = list(workbook.sheetnames)
        if sheet_name not in result.sheets:
            result.errors.append(f'Sheet "{sheet_name}" not found in the Excel file')
            return result

        headers, rows = _extract(workbook[sheet_name])
        if not headers or not rows:
            result.errors.append(
                f'Sheet "{sheet_name}" must contain at least a header row and one data row'
            )
            return result

        result.headers, result.rows = headers, rows
        return result
    except Exception as e:
        logger.warning("Sheet %s could not be read: %s", sheet_name, e)
        result.headers, result.rows = [], []
        result.errors.append(f"Failed to parse Excel file: {e}")
        return result
    finally:
        workbook.close()


def row_to_dict(headers, row):
    """Key a raw row by its header names, skipping unnamed columns."""
    return {h: (row[i] if i < len(row) else None) for i, h in enumerate(headers) if h}
