"""Downloadable import template workbook."""
from io import BytesIO

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.datavalidation import DataValidation

from storefront.importer.fields import FIELDS_BY_KEY, FIELD_KEYS, REQUIRED_FIELDS

INSTRUCTIONS_SHEET = "Instructions"
TEMPLATE_SHEET = "Products Template"
CATEGORIES_SHEET = "Categories"

HEADER_FILL = PatternFill(start_color="4F46E5", end_color="4F46E5", fill_type="solid")
HEADER_FONT = Font(bold=True, color="FFFFFF")
THIN = Side(style="thin")
HEADER_BORDER = Border(top=THIN, bottom=THIN, left=THIN, right=THIN)

EXAMPLE_ROW = {
    "name": "Modern Sofa",
    "slug": "modern-sofa",
    "category": "Living Room",
    "price": 1299.99,
    "description": "A comfortable modern sofa for your living room.",
    "features": "Durable construction;Easy to clean;Eco-friendly materials",
    "care_instructions": "Vacuum regularly;Spot clean with mild soap",
    "delivery_time": "2-3 weeks",
    "warranty": "2-year warranty",
    "return_policy": "14-day returns on unused items",
    "in_stock": "TRUE",
    "is_weekly_best_seller": "FALSE",
    "materials": "Fabric;Leather",
    "dimensions": "2600mm;3000mm",
    "material_dimension_prices": (
        "Fabric|2600mm|1299.99|true;Fabric|3000mm|1499.99|true;"
        "Leather|2600mm|1599.99|true;Leather|3000mm|1799.99|true"
    ),
    "add_ons": "Metal Frame|200;Premium Cushions|150",
}

COLUMN_WIDTHS = {
    "name": 20,
    "description": 40,
    "features": 40,
    "care_instructions": 40,
    "return_policy": 30,
    "materials": 25,
    "dimensions": 25,
    "material_dimension_prices": 60,
    "add_ons": 30,
}


def _instructions(ws, category_names):
    required = ", ".join(f.key for f in REQUIRED_FIELDS)
    lines = [
        "Product Import Template Instructions",
        "",
        "This template helps you import products into the system. Please follow these guidelines:",
        "",
        "1. Do not modify the header row (first row)",
        "2. Each row represents one product",
        f"3. Required fields: {required}",
        "4. For fields with multiple values (features, materials, etc.), separate values with semicolons (;)",
        "5. For variant pricing, use the format: Material|Dimension|Price|InStock "
        "(e.g., 'Fabric|2600mm|1299.99|true')",
        "6. For add-ons, use the format: Name|Price (e.g., 'Metal Frame|200')",
        "7. Boolean fields (in_stock, is_weekly_best_seller) should be TRUE or FALSE",
        "8. Images will be set to the default placeholder and must be uploaded separately after import",
        "",
        "Available Categories:",
    ]
    lines.extend(category_names)
    for line in lines:
        ws.append([line])
    ws["A1"].font = Font(bold=True, size=14)
    ws.cell(row=lines.index("Available Categories:") + 1, column=1).font = Font(bold=True)
    ws.column_dimensions["A"].width = 100


def _template(ws, category_names):
    ws.append(list(FIELD_KEYS))
    example = dict(EXAMPLE_ROW)
    if category_names:
        example["category"] = category_names[0]
    ws.append([example[key] for key in FIELD_KEYS])

    for index, key in enumerate(FIELD_KEYS, start=1):
        cell = ws.cell(row=1, column=index)
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.alignment = Alignment(horizontal="center")
        cell.border = HEADER_BORDER
        ws.column_dimensions[get_column_letter(index)].width = COLUMN_WIDTHS.get(key, 15)

    booleans = DataValidation(type="list", formula1='"TRUE,FALSE"', allow_blank=True)
    ws.add_data_validation(booleans)
    for key in ("in_stock", "is_weekly_best_seller"):
        column = get_column_letter(FIELD_KEYS.index(key) + 1)
        booleans.add(f"{column}2:{column}1000")

    ws.freeze_panes = "A2"


def _categories(ws, categories):
    ws.append(["name", "slug", "description"])
    for cell in ws[1]:
        cell.font = Font(bold=True)
    for category in categories:
        ws.append([category.name, category.slug, category.description or ""])
    ws.column_dimensions["A"].width = 30
    ws.column_dimensions["B"].width = 30
    ws.column_dimensions["C"].width = 60


def build_template(categories):
    """Return xlsx bytes: instructions, the template sheet and a category list.

    The template sheet is second so a workbook filled in from it is read
    from the right sheet by default.
    """
    category_names = [c.name for c in categories]
    workbook = Workbook()
    _instructions(workbook.active, category_names)
    workbook.active.title = INSTRUCTIONS_SHEET
    _template(workbook.create_sheet(TEMPLATE_SHEET), category_names)
    _categories(workbook.create_sheet(CATEGORIES_SHEET), categories)

    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def describe_fields():
    """Field catalog for the mapping step of the import UI."""
    return [
        {
            "key": key,
            "label": FIELDS_BY_KEY[key].label,
            "required": FIELDS_BY_KEY[key].required,
            "description": FIELDS_BY_KEY[key].description,
        }
        for key in FIELD_KEYS
    ]
