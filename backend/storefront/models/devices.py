from __future__ import annotations

from ..extensions import db
from storefront.time_utils import to_utc_z


class DeviceBrand(db.Model):
    """
    Top of the device taxonomy: Brand -> Type -> Series -> Model.

    Device brands drive the repair and trade-in flows. They are separate from
    the product-side Brand table, which labels accessories in the shop.
    """
    __tablename__ = "device_brands"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False, unique=True)
    image_url = db.Column(db.String(500), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<DeviceBrand id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "image_url": self.image_url,
            "created_at": to_utc_z(self.created_at),
        }


class DeviceType(db.Model):
    __tablename__ = "device_types"
    __table_args__ = (
        db.UniqueConstraint("brand_id", "name", name="uq_device_types_brand_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    brand_id = db.Column(db.Integer, db.ForeignKey("device_brands.id"), nullable=False, index=True)
    name = db.Column(db.String(120), nullable=False)
    image_url = db.Column(db.String(500), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    brand = db.relationship("DeviceBrand", backref=db.backref("device_types", lazy=True))

    def __repr__(self) -> str:
        return f"<DeviceType id={self.id} name={self.name!r} brand_id={self.brand_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "brand_id": self.brand_id,
            "brand_name": self.brand.name if self.brand else None,
            "name": self.name,
            "image_url": self.image_url,
            "created_at": to_utc_z(self.created_at),
        }


class DeviceSeries(db.Model):
    __tablename__ = "device_series"
    __table_args__ = (
        db.UniqueConstraint("device_type_id", "name", name="uq_device_series_type_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    device_type_id = db.Column(db.Integer, db.ForeignKey("device_types.id"), nullable=False, index=True)
    name = db.Column(db.String(120), nullable=False)
    image_url = db.Column(db.String(500), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    device_type = db.relationship("DeviceType", backref=db.backref("series", lazy=True))

    def __repr__(self) -> str:
        return f"<DeviceSeries id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        device_type = self.device_type
        return {
            "id": self.id,
            "device_type_id": self.device_type_id,
            "type_name": device_type.name if device_type else None,
            "brand_id": device_type.brand_id if device_type else None,
            "brand_name": device_type.brand.name if device_type and device_type.brand else None,
            "name": self.name,
            "image_url": self.image_url,
            "created_at": to_utc_z(self.created_at),
        }


class DeviceModel(db.Model):
    __tablename__ = "device_models"
    __table_args__ = (
        db.UniqueConstraint("device_series_id", "name", name="uq_device_models_series_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    device_series_id = db.Column(db.Integer, db.ForeignKey("device_series.id"), nullable=False, index=True)
    name = db.Column(db.String(120), nullable=False)
    image_url = db.Column(db.String(500), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    series = db.relationship("DeviceSeries", backref=db.backref("models", lazy=True))

    def __repr__(self) -> str:
        return f"<DeviceModel id={self.id} name={self.name!r}>"

    @property
    def brand(self) -> DeviceBrand | None:
        if self.series and self.series.device_type:
            return self.series.device_type.brand
        return None

    def to_dict(self) -> dict:
        series = self.series
        device_type = series.device_type if series else None
        brand = self.brand
        return {
            "id": self.id,
            "device_series_id": self.device_series_id,
            "series_name": series.name if series else None,
            "device_type_id": device_type.id if device_type else None,
            "type_name": device_type.name if device_type else None,
            "brand_id": brand.id if brand else None,
            "brand_name": brand.name if brand else None,
            "name": self.name,
            "image_url": self.image_url,
            "created_at": to_utc_z(self.created_at),
        }
