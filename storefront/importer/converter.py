"""Turn one mapped spreadsheet row into a ProductDraft."""
import logging
import math
import re

from storefront.importer.draft import (
    AddOn,
    Combination,
    Dimension,
    Material,
    ProductDraft,
)
from storefront.importer.fields import PRODUCT_FIELDS, FieldKind, normalize_mapping

logger = logging.getLogger(__name__)

TRUE_STRINGS = {"true", "yes", "1"}
LIST_SEPARATOR = ";"
PART_SEPARATOR = "|"


def slugify(name):
    """Canonical slug: lowercase, non-alphanumeric runs → "-", no edge hyphens."""
    slug = re.sub(r"[^a-z0-9]+", "-", str(name or "").lower())
    return slug.strip("-")


def _is_blank(value):
    return value is None or (isinstance(value, str) and not value.strip())


def _text(value):
    if _is_blank(value):
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def _number(value):
    """Float or None; unparseable input is dropped, not reported."""
    if _is_blank(value) or isinstance(value, bool):
        return None
    text = str(value).strip().replace(",", "")
    if "_" in text:
        return None
    try:
        number = float(text)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def _price(value):
    price = _number(value)
    return 0.0 if price is None else price


def to_bool(value):
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value == 1
    if isinstance(value, str):
        return value.strip().lower() in TRUE_STRINGS
    return False


def split_list(value):
    if _is_blank(value):
        return []
    return [part.strip() for part in _text(value).split(LIST_SEPARATOR) if part.strip()]


def _parts(entry):
    return [p.strip() for p in entry.split(PART_SEPARATOR)]


def parse_combinations(value):
    """Parse ``Material|Dimension|Price|InStock`` entries."""
    combinations = []
    for entry in split_list(value):
        parts = _parts(entry) + [""] * 4
        material, dimension, price, in_stock = parts[:4]
        if not material or not dimension:
            continue
        combinations.append(
            Combination(
                material_name=material,
                dimension_value=dimension,
                price=_price(price),
                in_stock=True if not in_stock else to_bool(in_stock),
            )
        )
    return combinations


def parse_add_ons(value):
    """Parse ``Name|Price`` entries."""
    add_ons = []
    for entry in split_list(value):
        parts = _parts(entry) + [""] * 2
        name, price = parts[:2]
        if not name:
            continue
        add_ons.append(AddOn(name=name, price=_price(price)))
    return add_ons


def _apply(draft, field, value, categories, errors):
    kind = field.kind
    key = field.key

    if kind == FieldKind.TEXT:
        text = _text(value)
        if field.required:
            setattr(draft, key, text)
        else:
            setattr(draft, key, text or None)

    elif kind == FieldKind.SLUG:
        draft.slug = _text(value)

    elif kind == FieldKind.NUMBER:
        setattr(draft, key, _number(value))

    elif kind == FieldKind.CATEGORY:
        draft.category = _text(value)
        if draft.category:
            match = next((c for c in categories if c.name == draft.category), None)
            if match is not None:
                draft.category_id = match.id
            else:
                errors.append(f'Category "{draft.category}" not found in the system')

    elif kind == FieldKind.LIST:
        setattr(draft, key, split_list(value))

    elif kind == FieldKind.BOOLEAN:
        setattr(draft, key, to_bool(value))

    elif kind == FieldKind.VARIANT_LIST:
        names = split_list(value)
        if not names:
            return
        variant = draft.ensure_variant()
        if key == "materials":
            variant.materials = [Material(name=n) for n in names]
        else:
            variant.dimensions = [Dimension(value=n) for n in names]

    elif kind == FieldKind.COMBINATIONS:
        combinations = parse_combinations(value)
        if combinations:
            draft.ensure_variant().combinations = combinations

    elif kind == FieldKind.ADD_ONS:
        add_ons = parse_add_ons(value)
        if add_ons:
            draft.ensure_variant().add_ons = add_ons


def convert_row(raw_row, mapping, categories, placeholder_image=None):
    """Build a draft from a header-keyed row.

    ``categories`` are objects with ``id`` and ``name``. Returns
    ``(draft, errors)``; a failing field adds an error and the remaining
    fields are still converted.
    """
    mapping = normalize_mapping(mapping)
    draft = ProductDraft()
    errors = []

    for field in PRODUCT_FIELDS:
        header = mapping.get(field.key)
        if header is None:
            continue
        try:
            _apply(draft, field, raw_row.get(header), categories, errors)
        except Exception as e:
            logger.debug("Field %s failed to convert: %s", field.key, e)
            errors.append(f"Error processing field {field.key}: {e}")

    if not draft.slug and draft.name:
        draft.slug = slugify(draft.name)

    if placeholder_image:
        draft.images = [placeholder_image]

    return draft, errors
