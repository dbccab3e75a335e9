from __future__ import annotations

from ..extensions import db
from storefront.time_utils import to_utc_z

STORAGE_CAPACITIES = ("16GB", "32GB", "64GB", "128GB", "256GB", "512GB", "1TB")
ACCESSORY_TYPES = ("charger", "box", "earphones", "case", "screen_protector", "accessories")


class PhoneCondition(db.Model):
    """Physical condition grade; multiplier scales the base trade-in price."""
    __tablename__ = "phone_conditions"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(64), nullable=False, unique=True)
    description = db.Column(db.String(255), nullable=True)
    multiplier = db.Column(db.Float, nullable=False)

    def __repr__(self) -> str:
        return f"<PhoneCondition id={self.id} name={self.name!r} multiplier={self.multiplier}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "multiplier": self.multiplier,
        }


class TradeInPrice(db.Model):
    __tablename__ = "trade_in_prices"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    device_model_id = db.Column(db.Integer, db.ForeignKey("device_models.id"), nullable=False, unique=True)
    base_price_cents = db.Column(db.Integer, nullable=False)

    device_model = db.relationship("DeviceModel")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "device_model_id": self.device_model_id,
            "device_model_name": self.device_model.name if self.device_model else None,
            "base_price_cents": self.base_price_cents,
        }


class PhoneTradeIn(db.Model):
    """
    Customer trade-in submission.

    LIFECYCLE (see trade_in_service.ALLOWED_TRANSITIONS):
        pending -> approved | rejected
        approved -> completed | rejected | cancelled
        rejected -> cancelled
        completed, cancelled: terminal

    estimated_value_cents is computed server-side at submission;
    estimate_source records which estimator produced it.
    offered_value_cents is set by an admin on approval/completion.
    """
    __tablename__ = "phone_trade_ins"
    __table_args__ = (
        db.Index("ix_trade_ins_status_created", "status", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(64), nullable=True, index=True)

    device_model_id = db.Column(db.Integer, db.ForeignKey("device_models.id"), nullable=False, index=True)
    condition_id = db.Column(db.Integer, db.ForeignKey("phone_conditions.id"), nullable=False)
    storage_capacity = db.Column(db.String(16), nullable=False)
    color = db.Column(db.String(64), nullable=True)
    description = db.Column(db.Text, nullable=True)
    images = db.Column(db.JSON, nullable=False, default=list)

    has_charger = db.Column(db.Boolean, nullable=False, default=False)
    has_box = db.Column(db.Boolean, nullable=False, default=False)
    has_accessories = db.Column(db.Boolean, nullable=False, default=False)

    estimated_value_cents = db.Column(db.Integer, nullable=False)
    estimate_source = db.Column(db.String(16), nullable=False)  # procedure, fallback
    offered_value_cents = db.Column(db.Integer, nullable=True)

    status = db.Column(db.String(16), nullable=False, default="pending", index=True)
    admin_notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    device_model = db.relationship("DeviceModel")
    condition = db.relationship("PhoneCondition")
    audit_log = db.relationship(
        "TradeInAuditLog",
        backref="trade_in",
        lazy=True,
        order_by="TradeInAuditLog.id",
    )

    def __repr__(self) -> str:
        return f"<PhoneTradeIn id={self.id} status={self.status}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "device_model": {
                "id": self.device_model_id,
                "name": self.device_model.name if self.device_model else None,
            },
            "condition": self.condition.to_dict() if self.condition else None,
            "storage_capacity": self.storage_capacity,
            "color": self.color,
            "description": self.description,
            "images": list(self.images or []),
            "has_charger": self.has_charger,
            "has_box": self.has_box,
            "has_accessories": self.has_accessories,
            "estimated_value_cents": self.estimated_value_cents,
            "estimate_source": self.estimate_source,
            "offered_value_cents": self.offered_value_cents,
            "status": self.status,
            "admin_notes": self.admin_notes,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class TradeInAuditLog(db.Model):
    """
    Append-only record of trade-in status transitions.

    Rows are written in the same transaction as the status change they
    describe and are never updated or deleted.
    """
    __tablename__ = "trade_in_audit_log"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    trade_in_id = db.Column(db.Integer, db.ForeignKey("phone_trade_ins.id"), nullable=False, index=True)
    status_from = db.Column(db.String(16), nullable=True)
    status_to = db.Column(db.String(16), nullable=False)
    notes = db.Column(db.Text, nullable=True)
    actor_id = db.Column(db.String(64), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<TradeInAuditLog id={self.id} {self.status_from}->{self.status_to}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "trade_in_id": self.trade_in_id,
            "status_from": self.status_from,
            "status_to": self.status_to,
            "notes": self.notes,
            "actor_id": self.actor_id,
            "created_at": to_utc_z(self.created_at),
        }


class PricingParameter(db.Model):
    """Global knob read by the trade-in pricing procedure."""
    __tablename__ = "price_prediction_parameters"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    parameter_name = db.Column(db.String(64), nullable=False, unique=True)
    parameter_value = db.Column(db.Float, nullable=False)
    description = db.Column(db.String(255), nullable=True)
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "parameter_name": self.parameter_name,
            "parameter_value": self.parameter_value,
            "description": self.description,
            "updated_at": to_utc_z(self.updated_at),
        }


class StoragePriceAdjustment(db.Model):
    __tablename__ = "storage_price_adjustments"
    __table_args__ = (
        db.UniqueConstraint("device_model_id", "storage_capacity", name="uq_storage_adj_model_storage"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    device_model_id = db.Column(db.Integer, db.ForeignKey("device_models.id"), nullable=False, index=True)
    storage_capacity = db.Column(db.String(16), nullable=False)
    price_adjustment_cents = db.Column(db.Integer, nullable=False, default=0)

    device_model = db.relationship("DeviceModel")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "device_model_id": self.device_model_id,
            "device_model": self.device_model.to_dict() if self.device_model else None,
            "storage_capacity": self.storage_capacity,
            "price_adjustment_cents": self.price_adjustment_cents,
        }


class ColorPriceAdjustment(db.Model):
    __tablename__ = "color_price_adjustments"
    __table_args__ = (
        db.UniqueConstraint("device_model_id", "color", name="uq_color_adj_model_color"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    device_model_id = db.Column(db.Integer, db.ForeignKey("device_models.id"), nullable=False, index=True)
    color = db.Column(db.String(64), nullable=False)
    price_adjustment_cents = db.Column(db.Integer, nullable=False, default=0)

    device_model = db.relationship("DeviceModel")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "device_model_id": self.device_model_id,
            "device_model": self.device_model.to_dict() if self.device_model else None,
            "color": self.color,
            "price_adjustment_cents": self.price_adjustment_cents,
        }


class AccessoryPriceAdjustment(db.Model):
    __tablename__ = "accessory_price_adjustments"
    __table_args__ = (
        db.UniqueConstraint("device_brand_id", "accessory_type", name="uq_accessory_adj_brand_type"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    accessory_type = db.Column(db.String(32), nullable=False)
    device_brand_id = db.Column(db.Integer, db.ForeignKey("device_brands.id"), nullable=False, index=True)
    price_adjustment_cents = db.Column(db.Integer, nullable=False, default=0)

    device_brand = db.relationship("DeviceBrand")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "accessory_type": self.accessory_type,
            "device_brand_id": self.device_brand_id,
            "device_brand_name": self.device_brand.name if self.device_brand else None,
            "price_adjustment_cents": self.price_adjustment_cents,
        }
