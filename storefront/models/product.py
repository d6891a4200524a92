from datetime import datetime, timezone
from storefront.extensions import db


class Product(db.Model):
    __tablename__ = "products"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    # The unique index is the source of truth for slug uniqueness
    slug = db.Column(db.String(255), unique=True, nullable=False, index=True)
    category = db.Column(db.String(255), nullable=False, default="")
    category_id = db.Column(
        db.Integer,
        db.ForeignKey("categories.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    price = db.Column(db.Float, nullable=True)
    description = db.Column(db.Text, default="")
    features = db.Column(db.JSON, default=list)
    care_instructions = db.Column(db.JSON, default=list)
    delivery_time = db.Column(db.String(255))
    warranty = db.Column(db.String(255))
    return_policy = db.Column(db.Text)
    in_stock = db.Column(db.Boolean, nullable=False, default=True)
    is_weekly_best_seller = db.Column(
        db.Boolean, nullable=False, default=False, index=True
    )
    images = db.Column(db.JSON, default=list)  # public URLs
    variants = db.Column(db.JSON, default=list)  # [{materials, dimensions, ...}]
    created_at = db.Column(
        db.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Columns an import may overwrite on an existing product
    CATALOG_FIELDS = (
        "name",
        "category",
        "category_id",
        "price",
        "description",
        "features",
        "care_instructions",
        "delivery_time",
        "warranty",
        "return_policy",
        "in_stock",
        "is_weekly_best_seller",
        "variants",
    )

    @property
    def starting_price(self):
        """Lowest in-stock combination price, falling back to the base price."""
        prices = [
            combo.get("price")
            for variant in self.variants or []
            for combo in variant.get("combinations", [])
            if combo.get("in_stock", True) and combo.get("price") is not None
        ]
        if prices:
            return min(prices)
        return self.price

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "category": self.category,
            "category_id": self.category_id,
            "price": self.price,
            "starting_price": self.starting_price,
            "description": self.description or "",
            "features": self.features or [],
            "care_instructions": self.care_instructions or [],
            "delivery_time": self.delivery_time,
            "warranty": self.warranty,
            "return_policy": self.return_policy,
            "in_stock": self.in_stock,
            "is_weekly_best_seller": self.is_weekly_best_seller,
            "images": self.images or [],
            "variants": self.variants or [],
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<Product {self.slug}: {self.name}>"
