# Overview: Trade-in value estimation (pricing procedure with a flat-bonus fallback).

"""
Trade-in Value Estimation

================================================================================
TWO PATHS
================================================================================

PRIMARY: calculate_trade_in_price() prices the device from the pricing tables:

    base * condition.multiplier
      + storage adjustment (model, storage)
      + colour adjustment (model, colour)
      + accessory adjustments (device brand, accessory), per flag set
    then * market_adjustment_factor, floored at minimum_offer_cents

  It returns None when it has nothing to say: the model has no base price
  row, or the procedure is switched off in config.

FALLBACK: used when the procedure returns None or fails.

    base = model's base price row, else a per-brand default
    base * condition.multiplier + charger 10 + box 15 + accessories 20

Every amount is integer cents; fractional results round half-up to the cent.
The caller is told which path produced the value.
================================================================================
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable, Optional

from flask import current_app

from ..extensions import db
from ..models import (
    AccessoryPriceAdjustment,
    ColorPriceAdjustment,
    DeviceModel,
    PhoneCondition,
    StoragePriceAdjustment,
    TradeInPrice,
)
from ..models.trade_ins import STORAGE_CAPACITIES
from ..validation import ValidationError
from . import pricing_service

logger = logging.getLogger(__name__)

SOURCE_PROCEDURE = "procedure"
SOURCE_FALLBACK = "fallback"

# Whole currency units, used when a model has no base price row.
BRAND_DEFAULT_BASE_PRICES = {
    "Apple": 300,
    "Samsung": 250,
    "Google": 200,
    "OnePlus": 180,
    "LG": 150,
    "Motorola": 120,
    "Default": 100,
}

# Flat accessory bonuses in cents (fallback path, and the procedure's
# default when a brand has no accessory adjustment row).
ACCESSORY_BONUS_CENTS = {
    "charger": 1000,
    "box": 1500,
    "accessories": 2000,
}


class EstimateError(ValueError):
    """The estimate inputs reference rows that do not exist."""


@dataclass(frozen=True)
class EstimateRequest:
    device_model_id: int
    condition_id: int
    storage_capacity: str
    color: Optional[str] = None
    has_charger: bool = False
    has_box: bool = False
    has_accessories: bool = False

    @classmethod
    def from_payload(cls, payload: dict) -> "EstimateRequest":
        """Validate a JSON body. Raises ValidationError on any bad field."""
        if not isinstance(payload, dict):
            raise ValidationError("Invalid JSON payload")

        ids = {}
        for field in ("device_model_id", "condition_id"):
            value = payload.get(field)
            if value is None or value == "":
                raise ValidationError(f"Missing required fields: {field}")
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValidationError(f"{field} must be an integer")
            ids[field] = value

        storage = payload.get("storage_capacity")
        if storage not in STORAGE_CAPACITIES:
            raise ValidationError(f"storage_capacity must be one of: {', '.join(STORAGE_CAPACITIES)}")

        color = payload.get("color")
        if color is not None:
            if not isinstance(color, str):
                raise ValidationError("color must be a string")
            color = color.strip() or None

        flags = {}
        for field in ("has_charger", "has_box", "has_accessories"):
            value = payload.get(field, False)
            if not isinstance(value, bool):
                raise ValidationError(f"{field} must be a boolean")
            flags[field] = value

        return cls(storage_capacity=storage, color=color, **ids, **flags)

    def accessory_flags(self) -> list[tuple[str, bool]]:
        return [
            ("charger", self.has_charger),
            ("box", self.has_box),
            ("accessories", self.has_accessories),
        ]


@dataclass(frozen=True)
class Estimate:
    value_cents: int
    source: str

    def to_dict(self) -> dict:
        return {"estimated_value_cents": self.value_cents, "source": self.source}


def round_cents(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _multiplier(condition: PhoneCondition) -> Decimal:
    return Decimal(str(condition.multiplier))


def calculate_trade_in_price(request: EstimateRequest) -> int | None:
    """Price a device from the pricing tables. None when the model has no base price."""
    if not current_app.config.get("TRADE_IN_PRICING_PROCEDURE_ENABLED", True):
        return None

    price_row = (
        db.session.query(TradeInPrice)
        .filter(TradeInPrice.device_model_id == request.device_model_id)
        .first()
    )
    if price_row is None:
        return None

    condition = db.session.get(PhoneCondition, request.condition_id)
    model = db.session.get(DeviceModel, request.device_model_id)
    if condition is None or model is None:
        return None

    value = Decimal(price_row.base_price_cents) * _multiplier(condition)

    storage = (
        db.session.query(StoragePriceAdjustment)
        .filter(StoragePriceAdjustment.device_model_id == request.device_model_id)
        .filter(StoragePriceAdjustment.storage_capacity == request.storage_capacity)
        .first()
    )
    if storage is not None:
        value += storage.price_adjustment_cents

    if request.color:
        color = (
            db.session.query(ColorPriceAdjustment)
            .filter(ColorPriceAdjustment.device_model_id == request.device_model_id)
            .filter(db.func.lower(ColorPriceAdjustment.color) == request.color.lower())
            .first()
        )
        if color is not None:
            value += color.price_adjustment_cents

    brand = model.brand
    for accessory_type, present in request.accessory_flags():
        if not present:
            continue
        row = None
        if brand is not None:
            row = (
                db.session.query(AccessoryPriceAdjustment)
                .filter(AccessoryPriceAdjustment.device_brand_id == brand.id)
                .filter(AccessoryPriceAdjustment.accessory_type == accessory_type)
                .first()
            )
        value += row.price_adjustment_cents if row is not None else ACCESSORY_BONUS_CENTS[accessory_type]

    factor = pricing_service.get_parameter(pricing_service.MARKET_ADJUSTMENT_FACTOR, 1.0)
    value *= Decimal(str(factor))

    minimum = pricing_service.get_parameter(pricing_service.MINIMUM_OFFER_CENTS, 0.0)
    return max(round_cents(value), int(minimum), 0)


def fallback_estimate(request: EstimateRequest, model: DeviceModel, condition: PhoneCondition) -> int:
    price_row = (
        db.session.query(TradeInPrice)
        .filter(TradeInPrice.device_model_id == request.device_model_id)
        .first()
    )
    if price_row is not None:
        base_cents = price_row.base_price_cents
    else:
        brand = model.brand
        brand_name = brand.name if brand is not None else "Default"
        units = BRAND_DEFAULT_BASE_PRICES.get(brand_name, BRAND_DEFAULT_BASE_PRICES["Default"])
        base_cents = units * 100

    value = Decimal(base_cents) * _multiplier(condition)
    for accessory_type, present in request.accessory_flags():
        if present:
            value += ACCESSORY_BONUS_CENTS[accessory_type]
    return round_cents(value)


def estimate_trade_in(
    request: EstimateRequest,
    *,
    procedure: Callable[[EstimateRequest], int | None] = calculate_trade_in_price,
) -> Estimate:
    """
    Estimate a device's trade-in value.

    Raises:
        EstimateError: unknown device model or condition
    """
    model = db.session.get(DeviceModel, request.device_model_id)
    if model is None:
        raise EstimateError("Device model not found")
    condition = db.session.get(PhoneCondition, request.condition_id)
    if condition is None:
        raise EstimateError("Condition not found")

    try:
        value = procedure(request)
    except Exception as e:
        # Any procedure failure degrades to the fallback estimate.
        db.session.rollback()
        logger.warning(
            "Pricing procedure failed for model %s, using fallback: %s",
            request.device_model_id, e, exc_info=True,
        )
        value = None
    else:
        if value is None:
            logger.warning(
                "Pricing procedure has no price for model %s, using fallback", request.device_model_id
            )

    if value is not None:
        return Estimate(value_cents=int(value), source=SOURCE_PROCEDURE)

    return Estimate(value_cents=fallback_estimate(request, model, condition), source=SOURCE_FALLBACK)
