import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from storefront.extensions import db
from storefront.importer.converter import slugify
from storefront.models.category import Category
from storefront.services.activity_service import log_activity

logger = logging.getLogger(__name__)


def list_categories():
    return Category.query.order_by(Category.display_order, Category.name).all()


def create_category(data, actor):
    """Create a category; the slug is derived from the name when omitted."""
    if actor is None or not actor.is_staff:
        return {"success": False, "message": "Unauthorized"}

    name = (data.get("name") or "").strip()
    if not name:
        return {"success": False, "message": "Category name is required"}
    slug = (data.get("slug") or "").strip() or slugify(name)
    try:
        display_order = int(data.get("display_order") or 0)
    except (TypeError, ValueError):
        return {"success": False, "message": "Display order must be a whole number"}

    if Category.query.filter_by(slug=slug).first():
        return {"success": False, "message": "A category with this slug already exists"}

    category = Category(
        name=name,
        slug=slug,
        description=data.get("description") or "",
        display_order=display_order,
    )
    try:
        db.session.add(category)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return {"success": False, "message": "A category with this name or slug already exists"}
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception("Failed to create category %s", slug)
        return {"success": False, "message": "Failed to create category"}

    log_activity(
        actor,
        "create_category",
        f"Created category: {category.name}",
        category.id,
        "category",
    )
    return {
        "success": True,
        "message": "Category created successfully",
        "category": category.to_dict(),
    }
