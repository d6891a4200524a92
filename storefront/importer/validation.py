"""Database-free parts of product draft validation."""

DUPLICATE_SLUG_PREFIX = "A product with the slug "

REQUIRED_FIELD_MESSAGES = (
    ("name", "Product name is required"),
    ("slug", "Slug is required"),
    ("category", "Category is required"),
    ("description", "Description is required"),
)


def duplicate_slug_message(slug):
    return f'{DUPLICATE_SLUG_PREFIX}"{slug}" already exists'


def is_duplicate_slug_error(message):
    return message.startswith(DUPLICATE_SLUG_PREFIX)


def check_required_fields(draft):
    """Return one message per required field left blank on the draft."""
    errors = []
    for attr, message in REQUIRED_FIELD_MESSAGES:
        value = getattr(draft, attr, None)
        if value is None or not str(value).strip():
            errors.append(message)
    return errors
