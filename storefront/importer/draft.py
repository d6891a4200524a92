"""In-memory product records built during a bulk import."""
from dataclasses import dataclass, field, asdict
from typing import Optional

from storefront.importer.validation import is_duplicate_slug_error


@dataclass
class Material:
    name: str
    description: str = ""


@dataclass
class Dimension:
    value: str
    description: str = ""


@dataclass
class Combination:
    """One priced material × dimension pairing."""

    material_name: str
    dimension_value: str
    price: float = 0.0
    in_stock: bool = True


@dataclass
class AddOn:
    name: str
    price: float = 0.0


@dataclass
class Variant:
    materials: list[Material] = field(default_factory=list)
    dimensions: list[Dimension] = field(default_factory=list)
    combinations: list[Combination] = field(default_factory=list)
    add_ons: list[AddOn] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data):
        return cls(
            materials=[Material(**m) for m in data.get("materials") or []],
            dimensions=[Dimension(**d) for d in data.get("dimensions") or []],
            combinations=[Combination(**c) for c in data.get("combinations") or []],
            add_ons=[AddOn(**a) for a in data.get("add_ons") or []],
        )


@dataclass
class ProductDraft:
    """A candidate product that has not been persisted yet."""

    name: str = ""
    slug: str = ""
    category: str = ""
    category_id: Optional[int] = None
    price: Optional[float] = None
    description: str = ""
    features: list[str] = field(default_factory=list)
    care_instructions: list[str] = field(default_factory=list)
    delivery_time: Optional[str] = None
    warranty: Optional[str] = None
    return_policy: Optional[str] = None
    in_stock: bool = True
    is_weekly_best_seller: bool = False
    images: list[str] = field(default_factory=list)
    variant: Optional[Variant] = None
    # Set during review when a human chose to replace an existing product
    overwrite: bool = False

    def ensure_variant(self):
        if self.variant is None:
            self.variant = Variant()
        return self.variant

    def to_dict(self):
        return asdict(self)

    def to_product_fields(self):
        """Column values for a ``Product`` row."""
        return {
            "name": self.name,
            "slug": self.slug,
            "category": self.category,
            "category_id": self.category_id,
            "price": self.price,
            "description": self.description,
            "features": list(self.features),
            "care_instructions": list(self.care_instructions),
            "delivery_time": self.delivery_time,
            "warranty": self.warranty,
            "return_policy": self.return_policy,
            "in_stock": self.in_stock,
            "is_weekly_best_seller": self.is_weekly_best_seller,
            "images": list(self.images),
            "variants": [asdict(self.variant)] if self.variant else [],
        }

    @classmethod
    def from_dict(cls, data):
        known = {f for f in cls.__dataclass_fields__ if f != "variant"}
        draft = cls(**{k: v for k, v in data.items() if k in known})
        if data.get("variant"):
            draft.variant = Variant.from_dict(data["variant"])
        return draft


@dataclass
class ImportRowResult:
    """Outcome of converting and validating one spreadsheet row."""

    index: int
    original: dict
    draft: ProductDraft
    errors: list[str] = field(default_factory=list)
    valid: bool = False
    overridden: bool = False
    held_errors: list[str] = field(default_factory=list)

    @property
    def duplicate_slug_errors(self):
        return [e for e in self.errors if is_duplicate_slug_error(e)]

    @property
    def can_override(self):
        """Only rows failing solely on a slug collision can be overridden."""
        dupes = self.duplicate_slug_errors
        return bool(dupes) and len(dupes) == len(self.errors)

    def override_duplicate_slug(self):
        """Accept a slug collision: the commit will replace the existing product."""
        if not self.can_override:
            return False
        self.held_errors = self.duplicate_slug_errors
        self.errors = [e for e in self.errors if e not in self.held_errors]
        self.valid = not self.errors
        self.overridden = True
        self.draft.overwrite = True
        return True

    def undo_override(self):
        if not self.overridden:
            return False
        self.errors = self.errors + self.held_errors
        self.held_errors = []
        self.valid = not self.errors
        self.overridden = False
        self.draft.overwrite = False
        return True

    def to_dict(self):
        return {
            "index": self.index,
            "original": self.original,
            "draft": self.draft.to_dict(),
            "errors": list(self.errors),
            "valid": self.valid,
            "overridden": self.overridden,
            "can_override": self.can_override,
        }
