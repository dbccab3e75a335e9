# Overview: Admin CRUD for the trade-in pricing tables (conditions, base prices, parameters, adjustments).

"""
Pricing tables read by the trade-in estimator.

    phone_conditions            condition grade -> multiplier
    trade_in_prices             device model -> base price
    price_prediction_parameters global knobs (market factor, minimum offer)
    storage_price_adjustments   (model, storage) -> +/- cents
    color_price_adjustments     (model, colour) -> +/- cents
    accessory_price_adjustments (device brand, accessory) -> +/- cents

Every table is edited through the same list/get/create/update/delete calls,
keyed by a short table name used in the admin URLs.
"""
from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import (
    AccessoryPriceAdjustment,
    ColorPriceAdjustment,
    DeviceBrand,
    DeviceModel,
    PhoneCondition,
    PhoneTradeIn,
    PricingParameter,
    StoragePriceAdjustment,
    TradeInPrice,
)
from ..models.trade_ins import ACCESSORY_TYPES, STORAGE_CAPACITIES
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    enforce_money,
)

MARKET_ADJUSTMENT_FACTOR = "market_adjustment_factor"
MINIMUM_OFFER_CENTS = "minimum_offer_cents"

DEFAULT_PARAMETERS = (
    (MARKET_ADJUSTMENT_FACTOR, 1.0, "Multiplier applied to every computed trade-in price"),
    (MINIMUM_OFFER_CENTS, 0.0, "Floor for computed trade-in prices, in cents"),
)

DEFAULT_CONDITIONS = (
    ("Like New", "No visible wear, fully functional", 1.0),
    ("Excellent", "Minimal signs of use", 0.9),
    ("Good", "Light scratches, fully functional", 0.8),
    ("Fair", "Visible wear, fully functional", 0.6),
    ("Poor", "Heavy wear or minor faults", 0.4),
)


@dataclass(frozen=True)
class PricingTable:
    model: type
    policy: ModelValidationPolicy
    label: str
    order_by: tuple


TABLES: dict[str, PricingTable] = {
    "conditions": PricingTable(
        model=PhoneCondition,
        policy=ModelValidationPolicy(
            writable_fields={"name", "description", "multiplier"},
            required_on_create={"name", "multiplier"},
        ),
        label="Condition",
        order_by=(PhoneCondition.multiplier.desc(), PhoneCondition.id.asc()),
    ),
    "base-prices": PricingTable(
        model=TradeInPrice,
        policy=ModelValidationPolicy(
            writable_fields={"device_model_id", "base_price_cents"},
            required_on_create={"device_model_id", "base_price_cents"},
        ),
        label="Base price",
        order_by=(TradeInPrice.device_model_id.asc(),),
    ),
    "parameters": PricingTable(
        model=PricingParameter,
        policy=ModelValidationPolicy(
            writable_fields={"parameter_name", "parameter_value", "description"},
            required_on_create={"parameter_name", "parameter_value"},
        ),
        label="Parameter",
        order_by=(PricingParameter.parameter_name.asc(),),
    ),
    "storage": PricingTable(
        model=StoragePriceAdjustment,
        policy=ModelValidationPolicy(
            writable_fields={"device_model_id", "storage_capacity", "price_adjustment_cents"},
            required_on_create={"device_model_id", "storage_capacity"},
        ),
        label="Storage adjustment",
        order_by=(StoragePriceAdjustment.device_model_id.asc(), StoragePriceAdjustment.id.asc()),
    ),
    "colors": PricingTable(
        model=ColorPriceAdjustment,
        policy=ModelValidationPolicy(
            writable_fields={"device_model_id", "color", "price_adjustment_cents"},
            required_on_create={"device_model_id", "color"},
        ),
        label="Colour adjustment",
        order_by=(ColorPriceAdjustment.device_model_id.asc(), ColorPriceAdjustment.color.asc()),
    ),
    "accessories": PricingTable(
        model=AccessoryPriceAdjustment,
        policy=ModelValidationPolicy(
            writable_fields={"device_brand_id", "accessory_type", "price_adjustment_cents"},
            required_on_create={"device_brand_id", "accessory_type"},
        ),
        label="Accessory adjustment",
        order_by=(AccessoryPriceAdjustment.device_brand_id.asc(), AccessoryPriceAdjustment.accessory_type.asc()),
    ),
}


def get_table(name: str) -> PricingTable:
    try:
        return TABLES[name]
    except KeyError:
        raise NotFoundError(f"Unknown pricing table: {name}")


def enforce_rules_pricing(table_name: str, patch: dict) -> None:
    """Table-specific checks on an already type-coerced patch."""
    if "multiplier" in patch and patch["multiplier"] is not None:
        if not 0 <= patch["multiplier"] <= 1:
            raise ValidationError("multiplier must be between 0 and 1")
    if "storage_capacity" in patch and patch["storage_capacity"] not in STORAGE_CAPACITIES:
        raise ValidationError(f"storage_capacity must be one of: {', '.join(STORAGE_CAPACITIES)}")
    if "accessory_type" in patch and patch["accessory_type"] not in ACCESSORY_TYPES:
        raise ValidationError(f"accessory_type must be one of: {', '.join(ACCESSORY_TYPES)}")

    enforce_money(patch, "base_price_cents")
    enforce_money(patch, "price_adjustment_cents", allow_negative=True)

    if patch.get("device_model_id") is not None and db.session.get(DeviceModel, patch["device_model_id"]) is None:
        raise ValidationError("device_model_id does not reference an existing model")
    if patch.get("device_brand_id") is not None and db.session.get(DeviceBrand, patch["device_brand_id"]) is None:
        raise ValidationError("device_brand_id does not reference an existing brand")


def list_rows(table_name: str) -> list[dict]:
    table = get_table(table_name)
    rows = db.session.query(table.model).order_by(*table.order_by).all()
    return [r.to_dict() for r in rows]


def get_row(table_name: str, row_id: int) -> dict:
    table = get_table(table_name)
    row = db.session.get(table.model, row_id)
    if row is None:
        raise NotFoundError(f"{table.label} not found")
    return row.to_dict()


def _commit(table: PricingTable) -> None:
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError(f"{table.label} already exists")


def create_row(table_name: str, patch: dict) -> dict:
    table = get_table(table_name)
    enforce_rules_pricing(table_name, patch)
    row = table.model(**patch)
    db.session.add(row)
    _commit(table)
    return row.to_dict()


def update_row(table_name: str, row_id: int, patch: dict) -> dict:
    table = get_table(table_name)
    row = db.session.get(table.model, row_id)
    if row is None:
        raise NotFoundError(f"{table.label} not found")
    enforce_rules_pricing(table_name, patch)
    for key, value in patch.items():
        setattr(row, key, value)
    _commit(table)
    return row.to_dict()


def delete_row(table_name: str, row_id: int) -> bool:
    table = get_table(table_name)
    row = db.session.get(table.model, row_id)
    if row is None:
        return False
    if table.model is PhoneCondition:
        if db.session.query(PhoneTradeIn.id).filter(PhoneTradeIn.condition_id == row_id).first():
            raise ConflictError("Cannot delete condition: trade-ins still reference it")
    db.session.delete(row)
    db.session.commit()
    return True


def get_parameter(name: str, default: float) -> float:
    row = db.session.query(PricingParameter).filter(PricingParameter.parameter_name == name).first()
    if row is None or row.parameter_value is None:
        return default
    return float(row.parameter_value)


def ensure_defaults() -> dict:
    """Seed default conditions and parameters that are missing. Idempotent."""
    created = {"conditions": 0, "parameters": 0}

    existing_conditions = {name for (name,) in db.session.query(PhoneCondition.name).all()}
    for name, description, multiplier in DEFAULT_CONDITIONS:
        if name not in existing_conditions:
            db.session.add(PhoneCondition(name=name, description=description, multiplier=multiplier))
            created["conditions"] += 1

    existing_params = {name for (name,) in db.session.query(PricingParameter.parameter_name).all()}
    for name, value, description in DEFAULT_PARAMETERS:
        if name not in existing_params:
            db.session.add(PricingParameter(parameter_name=name, parameter_value=value, description=description))
            created["parameters"] += 1

    db.session.commit()
    return created
