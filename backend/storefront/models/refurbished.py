from __future__ import annotations

from ..extensions import db
from storefront.time_utils import to_utc_z, to_iso_date

REFURBISHED_CONDITIONS = ("excellent", "good", "fair")


class RefurbishedProduct(db.Model):
    """
    Refurbished device listed for sale.

    PRICING: discount_percentage is derived from original vs refurbished price
    on every save (see refurbished_service); clients never set it directly.

    IMAGES: one-to-many RefurbishedProductImage. When any images exist,
    exactly one carries is_primary.
    """
    __tablename__ = "refurbished_products"
    __table_args__ = (
        db.Index("ix_refurbished_condition", "condition"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    condition = db.Column(db.String(16), nullable=False, default="excellent")  # excellent, good, fair

    original_price_cents = db.Column(db.Integer, nullable=False)
    refurbished_price_cents = db.Column(db.Integer, nullable=False)
    discount_percentage = db.Column(db.Integer, nullable=False, default=0)

    warranty_months = db.Column(db.Integer, nullable=False, default=6)
    in_stock = db.Column(db.Integer, nullable=False, default=0)
    is_featured = db.Column(db.Boolean, nullable=False, default=False)

    brand_id = db.Column(db.Integer, db.ForeignKey("brands.id"), nullable=True, index=True)
    category_id = db.Column(db.Integer, db.ForeignKey("categories.id"), nullable=True, index=True)
    compatible_with_model_id = db.Column(db.Integer, db.ForeignKey("device_models.id"), nullable=True, index=True)

    refurbishment_date = db.Column(db.Date, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)

    brand = db.relationship("Brand")
    category = db.relationship("Category")
    compatible_with_model = db.relationship("DeviceModel")
    images = db.relationship(
        "RefurbishedProductImage",
        backref="product",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="RefurbishedProductImage.id",
    )

    def __repr__(self) -> str:
        return f"<RefurbishedProduct id={self.id} name={self.name!r} condition={self.condition}>"

    @property
    def primary_image(self) -> "RefurbishedProductImage | None":
        for image in self.images:
            if image.is_primary:
                return image
        return None

    def to_dict(self) -> dict:
        primary = self.primary_image
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "condition": self.condition,
            "original_price_cents": self.original_price_cents,
            "refurbished_price_cents": self.refurbished_price_cents,
            "discount_percentage": self.discount_percentage,
            "warranty_months": self.warranty_months,
            "in_stock": self.in_stock,
            "is_featured": self.is_featured,
            "brand_id": self.brand_id,
            "brand_name": self.brand.name if self.brand else None,
            "category_id": self.category_id,
            "category_name": self.category.name if self.category else None,
            "compatible_with_model_id": self.compatible_with_model_id,
            "compatible_with_model_name": self.compatible_with_model.name if self.compatible_with_model else None,
            "refurbishment_date": to_iso_date(self.refurbishment_date),
            "primary_image_url": primary.image_url if primary else None,
            "images": [img.to_dict() for img in self.images],
            "created_at": to_utc_z(self.created_at),
        }


class RefurbishedProductImage(db.Model):
    __tablename__ = "refurbished_product_images"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("refurbished_products.id"), nullable=False, index=True)
    image_url = db.Column(db.String(500), nullable=False)
    is_primary = db.Column(db.Boolean, nullable=False, default=False)

    def __repr__(self) -> str:
        return f"<RefurbishedProductImage id={self.id} primary={self.is_primary}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "image_url": self.image_url,
            "is_primary": self.is_primary,
        }
