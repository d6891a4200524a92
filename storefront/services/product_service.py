import logging
from datetime import datetime, timezone

from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from storefront.errors import DuplicateSlug, NotFound, PersistenceFailed, StorefrontError
from storefront.extensions import db
from storefront.models.category import Category
from storefront.models.product import Product
from storefront.services.activity_service import log_activity

logger = logging.getLogger(__name__)


def slug_exists(slug):
    return db.session.query(Product.id).filter_by(slug=slug).first() is not None


def _resolve_category(draft):
    if draft.category_id is None and draft.category:
        category = Category.query.filter_by(name=draft.category).first()
        if category is not None:
            draft.category_id = category.id


def _default_images(draft):
    if draft.images:
        return list(draft.images)
    return [current_app.config["PLACEHOLDER_IMAGE_URL"]]


def insert_product(draft):
    """Insert a new product from a draft and commit.

    Raises ``DuplicateSlug`` when the slug index rejects the row and
    ``PersistenceFailed`` for any other store error. The session is rolled
    back before either is raised.
    """
    _resolve_category(draft)
    fields = draft.to_product_fields()
    fields["images"] = _default_images(draft)
    product = Product(**fields)
    try:
        db.session.add(product)
        db.session.commit()
    except IntegrityError as e:
        db.session.rollback()
        if draft.slug and slug_exists(draft.slug):
            raise DuplicateSlug(draft.slug)
        logger.warning("Product %s rejected by a constraint: %s", draft.slug, e.orig)
        raise PersistenceFailed("Failed to save product: a required value is missing or invalid")
    except SQLAlchemyError as e:
        db.session.rollback()
        raise PersistenceFailed(f"Failed to save product: {e.__class__.__name__}")
    return product


def replace_product(draft):
    """Overwrite the catalog fields of the product sharing the draft's slug.

    Images, id and creation time of the existing product are kept.
    """
    product = Product.query.filter_by(slug=draft.slug).first()
    if product is None:
        raise NotFound("Product", draft.slug)

    _resolve_category(draft)
    fields = draft.to_product_fields()
    for name in Product.CATALOG_FIELDS:
        setattr(product, name, fields[name])
    product.updated_at = datetime.now(timezone.utc)
    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        raise PersistenceFailed(f"Failed to update product: {e.__class__.__name__}")
    return product


def create_product(draft, actor):
    """Create a single product; duplicate slugs are always rejected."""
    if actor is None or not actor.is_staff:
        return {"success": False, "message": "Unauthorized"}

    if slug_exists(draft.slug):
        return {"success": False, "message": "A product with this slug already exists"}

    try:
        product = insert_product(draft)
    except StorefrontError as e:
        logger.warning("Product %s not created: %s", draft.slug, e.message)
        return {"success": False, "message": e.message}

    log_activity(
        actor,
        "create_product",
        f"Created product: {product.name}",
        product.id,
        "product",
    )
    return {
        "success": True,
        "message": "Product created successfully",
        "product": product.to_dict(),
    }


def get_products(
    category=None, min_price=None, max_price=None, in_stock=None,
    best_sellers=False, sort="newest", page=1, per_page=24,
):
    """Catalog listing with filters.

    ``category`` is a comma-separated list of category names or slugs.
    """
    query = Product.query

    if category:
        wanted = [c.strip() for c in category.split(",") if c.strip()]
        slugs_to_names = [
            c.name for c in Category.query.filter(Category.slug.in_(wanted)).all()
        ]
        query = query.filter(Product.category.in_(wanted + slugs_to_names))
    if min_price is not None:
        query = query.filter(Product.price >= min_price)
    if max_price is not None:
        query = query.filter(Product.price <= max_price)
    if in_stock is not None:
        query = query.filter(Product.in_stock.is_(in_stock))
    if best_sellers:
        query = query.filter(Product.is_weekly_best_seller.is_(True))

    if sort == "newest":
        query = query.order_by(Product.created_at.desc(), Product.id.desc())
    elif sort == "price_asc":
        query = query.order_by(Product.price.asc())
    elif sort == "price_desc":
        query = query.order_by(Product.price.desc())
    elif sort == "name":
        query = query.order_by(Product.name.asc())

    return query.paginate(page=page, per_page=per_page, error_out=False)


def get_product_by_slug(slug):
    return Product.query.filter_by(slug=slug).first()


def get_catalog_stats():
    """Product counts per category for the ``stats`` command."""
    rows = (
        db.session.query(Product.category, db.func.count(Product.id))
        .group_by(Product.category)
        .all()
    )
    return dict(rows)
