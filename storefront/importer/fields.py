"""The fixed catalog of importable product fields and header auto-mapping."""
import enum
import re
from dataclasses import dataclass


class FieldKind(str, enum.Enum):
    TEXT = "text"
    SLUG = "slug"
    CATEGORY = "category"
    NUMBER = "number"
    LIST = "list"
    BOOLEAN = "boolean"
    VARIANT_LIST = "variant_list"
    COMBINATIONS = "combinations"
    ADD_ONS = "add_ons"


@dataclass(frozen=True)
class ProductField:
    key: str
    label: str
    kind: FieldKind
    required: bool = False
    description: str = ""


PRODUCT_FIELDS = (
    ProductField("name", "Product Name", FieldKind.TEXT, True, "The name of the product"),
    ProductField(
        "slug", "Slug", FieldKind.SLUG, False,
        "URL-friendly version of the name (auto-generated if not provided)",
    ),
    ProductField("category", "Category", FieldKind.CATEGORY, True, "The product category"),
    ProductField("price", "Price", FieldKind.NUMBER, False, "Base price of the product"),
    ProductField(
        "description", "Description", FieldKind.TEXT, True, "Detailed product description"
    ),
    ProductField(
        "features", "Features", FieldKind.LIST, False, "Product features (semicolon separated)"
    ),
    ProductField(
        "care_instructions", "Care Instructions", FieldKind.LIST, False,
        "Care instructions (semicolon separated)",
    ),
    ProductField("delivery_time", "Delivery Time", FieldKind.TEXT, False, "Estimated delivery time"),
    ProductField("warranty", "Warranty", FieldKind.TEXT, False, "Warranty information"),
    ProductField("return_policy", "Return Policy", FieldKind.TEXT, False, "Return policy text"),
    ProductField(
        "in_stock", "In Stock", FieldKind.BOOLEAN, False,
        "Whether the product is in stock (TRUE/FALSE)",
    ),
    ProductField(
        "is_weekly_best_seller", "Weekly Best Seller", FieldKind.BOOLEAN, False,
        "Whether the product is a weekly best seller (TRUE/FALSE)",
    ),
    ProductField(
        "materials", "Materials", FieldKind.VARIANT_LIST, False,
        "Available materials (semicolon separated)",
    ),
    ProductField(
        "dimensions", "Dimensions", FieldKind.VARIANT_LIST, False,
        "Available dimensions (semicolon separated)",
    ),
    ProductField(
        "material_dimension_prices", "Material/Dimension Prices", FieldKind.COMBINATIONS, False,
        "Format: Material|Dimension|Price|InStock (semicolon separated)",
    ),
    ProductField(
        "add_ons", "Add-ons", FieldKind.ADD_ONS, False, "Format: Name|Price (semicolon separated)"
    ),
)

FIELDS_BY_KEY = {f.key: f for f in PRODUCT_FIELDS}
FIELD_KEYS = tuple(FIELDS_BY_KEY)
REQUIRED_FIELDS = tuple(f for f in PRODUCT_FIELDS if f.required)


def _normalize(text):
    return re.sub(r"[\s_\-]+", "", str(text or "")).lower()


def suggest_mapping(headers):
    """Best-effort ``{field_key: header}`` for a review step to confirm.

    Exact match (case, spaces, underscores and hyphens ignored) against the
    field key or label wins; otherwise the first unclaimed header containing
    the key is used; otherwise the field stays unmapped.
    """
    headers = [h for h in headers if h is not None and str(h).strip()]
    mapping = {}
    claimed = set()

    for f in PRODUCT_FIELDS:
        targets = {_normalize(f.key), _normalize(f.label)}
        for header in headers:
            if header not in claimed and _normalize(header) in targets:
                mapping[f.key] = header
                claimed.add(header)
                break

    for f in PRODUCT_FIELDS:
        if f.key in mapping:
            continue
        key = _normalize(f.key)
        for header in headers:
            if header not in claimed and key in _normalize(header):
                mapping[f.key] = header
                claimed.add(header)
                break

    return mapping


def normalize_mapping(mapping):
    """Drop unknown field keys and blank or "none" column choices."""
    cleaned = {}
    for key, header in (mapping or {}).items():
        if key not in FIELDS_BY_KEY or header is None:
            continue
        header = str(header)
        if not header.strip() or header == "none":
            continue
        cleaned[key] = header
    return cleaned


def missing_required_fields(mapping):
    mapping = normalize_mapping(mapping)
    return [
        f"{f.label} is required but not mapped to any column"
        for f in REQUIRED_FIELDS
        if f.key not in mapping
    ]
