from __future__ import annotations

from ..extensions import db
from storefront.time_utils import to_utc_z


class Brand(db.Model):
    """Product-side brand, used as a search facet."""
    __tablename__ = "brands"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False, unique=True)
    image_url = db.Column(db.String(500), nullable=True)

    def __repr__(self) -> str:
        return f"<Brand id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "image_url": self.image_url}


class Category(db.Model):
    __tablename__ = "categories"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    image_url = db.Column(db.String(500), nullable=True)
    parent_id = db.Column(db.Integer, db.ForeignKey("categories.id"), nullable=True, index=True)

    parent = db.relationship("Category", remote_side=[id], backref=db.backref("children", lazy=True))

    def __repr__(self) -> str:
        return f"<Category id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "image_url": self.image_url,
            "parent_id": self.parent_id,
        }


class Product(db.Model):
    """
    Accessory / part product sold in the shop.

    PRICING: base_price_cents is authoritative; variants carry a signed
    price_adjustment_cents on top of it. discount_percentage > 0 puts the
    product on the offers page.

    SEARCH: embedding is a JSON list of floats produced from name + description
    (see `flask search update-embeddings`). Repair parts never appear in search.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_brand_category", "brand_id", "category_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    base_price_cents = db.Column(db.Integer, nullable=False, default=0)
    in_stock = db.Column(db.Integer, nullable=False, default=0)
    image_url = db.Column(db.String(500), nullable=True)

    brand_id = db.Column(db.Integer, db.ForeignKey("brands.id"), nullable=True, index=True)
    category_id = db.Column(db.Integer, db.ForeignKey("categories.id"), nullable=True, index=True)

    is_repair_part = db.Column(db.Boolean, nullable=False, default=False)
    discount_percentage = db.Column(db.Integer, nullable=False, default=0)

    embedding = db.Column(db.JSON(none_as_null=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    brand = db.relationship("Brand", backref=db.backref("products", lazy=True))
    category = db.relationship("Category", backref=db.backref("products", lazy=True))
    variants = db.relationship(
        "ProductVariant",
        backref="product",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="ProductVariant.id",
    )

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r}>"

    @property
    def effective_price_cents(self) -> int:
        if not self.discount_percentage:
            return self.base_price_cents
        return round(self.base_price_cents * (100 - self.discount_percentage) / 100)

    def to_dict(self, *, include_variants: bool = False) -> dict:
        data = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "base_price_cents": self.base_price_cents,
            "effective_price_cents": self.effective_price_cents,
            "discount_percentage": self.discount_percentage,
            "in_stock": self.in_stock,
            "image_url": self.image_url,
            "brand_id": self.brand_id,
            "brand_name": self.brand.name if self.brand else None,
            "category_id": self.category_id,
            "category_name": self.category.name if self.category else None,
            "is_repair_part": self.is_repair_part,
            "has_embedding": self.embedding is not None,
            "variant_count": len(self.variants),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_variants:
            data["variants"] = [v.to_dict() for v in self.variants]
        return data


class ProductVariant(db.Model):
    """Purchasable sub-option of a product (e.g. Color: Black)."""
    __tablename__ = "product_variants"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    variant_name = db.Column(db.String(120), nullable=False)
    variant_value = db.Column(db.String(120), nullable=False)
    price_adjustment_cents = db.Column(db.Integer, nullable=False, default=0)
    stock = db.Column(db.Integer, nullable=False, default=0)
    images = db.Column(db.JSON, nullable=False, default=list)

    def __repr__(self) -> str:
        return f"<ProductVariant id={self.id} {self.variant_name}={self.variant_value!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "variant_name": self.variant_name,
            "variant_value": self.variant_value,
            "price_adjustment_cents": self.price_adjustment_cents,
            "stock": self.stock,
            "images": list(self.images or []),
        }
