# Overview: Service-layer operations for the device taxonomy (brand -> type -> series -> model).

"""
Device taxonomy service.

HIERARCHY (strict, four levels):
    DeviceBrand -> DeviceType -> DeviceSeries -> DeviceModel

Every row references its parent by id. A node cannot be deleted while
anything still hangs off it; the dependency check and the delete share a
transaction so a concurrent insert cannot slip in between.
"""
from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import (
    DeviceBrand,
    DeviceType,
    DeviceSeries,
    DeviceModel,
    PhoneTradeIn,
    Appointment,
    TradeInPrice,
    StoragePriceAdjustment,
    ColorPriceAdjustment,
    RefurbishedProduct,
    AccessoryPriceAdjustment,
)
from ..validation import ConflictError, NotFoundError, ValidationError
from .concurrency import atomic, lock_for_update

logger = logging.getLogger(__name__)

# level -> (model, parent model, parent fk column)
LEVELS = {
    "brands": (DeviceBrand, None, None),
    "types": (DeviceType, DeviceBrand, "brand_id"),
    "series": (DeviceSeries, DeviceType, "device_type_id"),
    "models": (DeviceModel, DeviceSeries, "device_series_id"),
}

LEVEL_LABELS = {
    "brands": "brand",
    "types": "device type",
    "series": "series",
    "models": "model",
}


def resolve_level(level: str):
    try:
        return LEVELS[level]
    except KeyError:
        raise NotFoundError(f"Unknown taxonomy level: {level}")


def list_nodes(level: str, *, parent_id: int | None = None) -> list[dict]:
    """List nodes at a level, optionally restricted to one parent. Sorted by name."""
    model, _parent, fk = resolve_level(level)
    query = db.session.query(model)
    if parent_id is not None and fk is not None:
        query = query.filter(getattr(model, fk) == parent_id)
    return [row.to_dict() for row in query.order_by(model.name.asc(), model.id.asc()).all()]


def get_node(level: str, node_id: int) -> dict:
    model, _parent, _fk = resolve_level(level)
    row = db.session.get(model, node_id)
    if row is None:
        raise NotFoundError(f"{LEVEL_LABELS[level].capitalize()} not found")
    return row.to_dict()


def _require_parent(level: str, patch: dict) -> None:
    _model, parent_model, fk = resolve_level(level)
    if parent_model is None or fk not in patch:
        return
    if db.session.get(parent_model, patch[fk]) is None:
        raise ValidationError(f"{fk} does not reference an existing row")


def create_node(level: str, patch: dict) -> dict:
    model, _parent, _fk = resolve_level(level)
    _require_parent(level, patch)

    row = model(**patch)
    db.session.add(row)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError(f"A {LEVEL_LABELS[level]} with this name already exists")
    return row.to_dict()


def update_node(level: str, node_id: int, patch: dict) -> dict:
    model, _parent, _fk = resolve_level(level)
    row = db.session.get(model, node_id)
    if row is None:
        raise NotFoundError(f"{LEVEL_LABELS[level].capitalize()} not found")
    _require_parent(level, patch)

    for key, value in patch.items():
        setattr(row, key, value)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError(f"A {LEVEL_LABELS[level]} with this name already exists")
    return row.to_dict()


def _dependents(level: str, node_id: int) -> list[str]:
    """Describe what still references the node, or [] when it is free to delete."""
    blockers: list[str] = []
    if level == "brands":
        if db.session.query(DeviceType.id).filter(DeviceType.brand_id == node_id).first():
            blockers.append("device types")
    elif level == "types":
        if db.session.query(DeviceSeries.id).filter(DeviceSeries.device_type_id == node_id).first():
            blockers.append("series")
    elif level == "series":
        if db.session.query(DeviceModel.id).filter(DeviceModel.device_series_id == node_id).first():
            blockers.append("models")
    elif level == "models":
        if db.session.query(PhoneTradeIn.id).filter(PhoneTradeIn.device_model_id == node_id).first():
            blockers.append("trade-ins")
        if db.session.query(Appointment.id).filter(Appointment.device_model_id == node_id).first():
            blockers.append("appointments")
        if db.session.query(RefurbishedProduct.id).filter(RefurbishedProduct.compatible_with_model_id == node_id).first():
            blockers.append("refurbished products")
    return blockers


def delete_node(level: str, node_id: int) -> None:
    """
    Delete a taxonomy node.

    Raises:
        NotFoundError: no such node
        ConflictError: the node still has children or is referenced
    """
    model, _parent, _fk = resolve_level(level)
    label = LEVEL_LABELS[level]

    with atomic():
        row = lock_for_update(db.session.query(model).filter(model.id == node_id)).first()
        if row is None:
            raise NotFoundError(f"{label.capitalize()} not found")

        blockers = _dependents(level, node_id)
        if blockers:
            logger.info("Blocked delete of %s %s: has %s", label, node_id, ", ".join(blockers))
            raise ConflictError(f"Cannot delete {label}: it still has {', '.join(blockers)}")

        if level == "models":
            for pricing_model in (TradeInPrice, StoragePriceAdjustment, ColorPriceAdjustment):
                db.session.query(pricing_model).filter(pricing_model.device_model_id == node_id).delete()
        elif level == "brands":
            db.session.query(AccessoryPriceAdjustment).filter(
                AccessoryPriceAdjustment.device_brand_id == node_id
            ).delete()
        db.session.delete(row)
