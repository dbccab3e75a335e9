from __future__ import annotations
from datetime import date, datetime
from urllib.parse import urlparse
from storefront.time_utils import parse_iso_datetime

from dataclasses import dataclass
from typing import Any

from sqlalchemy import JSON, Boolean, Date, DateTime, Float, Integer, String, Text
from sqlalchemy.orm import DeclarativeMeta


# Maximum price: $9,999,999.99 (999,999,999 cents)
# This prevents database overflow issues and nonsensical prices
MAX_PRICE_CENTS = 999_999_999


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate name, blocked delete)."""


class NotFoundError(LookupError):
    """404-level missing row."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _coerce_int(key: str, value: Any) -> int:
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{key} must be an integer")
        if "e" in stripped.lower():
            raise ValidationError(f"{key} must be a plain integer (scientific notation not allowed)")
        if "." in stripped:
            raise ValidationError(f"{key} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{key} must be an integer")
    if isinstance(value, float):
        raise ValidationError(f"{key} must be an integer, not a decimal")
    raise ValidationError(f"{key} must be an integer")


def _coerce_float(key: str, value: Any) -> float:
    if isinstance(value, bool):
        raise ValidationError(f"{key} must be a number")
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            raise ValidationError(f"{key} must be a number")
    raise ValidationError(f"{key} must be a number")


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    if isinstance(coltype, Integer):
        return _coerce_int(col.key, value)

    if isinstance(coltype, Float):
        return _coerce_float(col.key, value)

    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lower() in {"true", "false"}:
            return value.strip().lower() == "true"
        raise ValidationError(f"{col.key} must be a boolean")

    # Datetimes (accept ISO-8601 strings; normalize to UTC)
    if isinstance(coltype, DateTime):
        if isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                dt = parse_iso_datetime(value)
            except ValueError:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            if dt is None:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            return dt
        raise ValidationError(f"{col.key} must be a datetime")

    if isinstance(coltype, Date):
        if isinstance(value, date) and not isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                dt = parse_iso_datetime(value)
            except ValueError:
                raise ValidationError(f"{col.key} must be an ISO-8601 date")
            if dt is None:
                raise ValidationError(f"{col.key} must be an ISO-8601 date")
            return dt.date()
        raise ValidationError(f"{col.key} must be a date")

    if isinstance(coltype, JSON):
        return value

    if isinstance(coltype, (String, Text)):
        return str(value).strip()

    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(f for f in required if payload.get(f) in (None, ""))
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        col = cols[k]

        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


# =============================================================================
# DOMAIN RULES
# =============================================================================

def enforce_money(patch: dict, field: str, *, allow_negative: bool = False) -> None:
    if field not in patch or patch[field] is None:
        return
    amount = patch[field]
    if not isinstance(amount, int) or isinstance(amount, bool):
        raise ValidationError(f"{field} must be an integer number of cents")
    if not allow_negative and amount < 0:
        raise ValidationError(f"{field} must be >= 0")
    if abs(amount) > MAX_PRICE_CENTS:
        raise ValidationError(f"{field} cannot exceed {MAX_PRICE_CENTS} (${MAX_PRICE_CENTS / 100:,.2f})")


def enforce_non_negative(patch: dict, *fields: str) -> None:
    for field in fields:
        if field in patch and patch[field] is not None and patch[field] < 0:
            raise ValidationError(f"{field} must be >= 0")


def enforce_url(patch: dict, field: str, *, required: bool = False) -> None:
    value = patch.get(field)
    if not value:
        if required:
            raise ValidationError(f"{field} is required")
        return
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValidationError(f"{field} must be a valid http(s) URL")


def enforce_url_list(patch: dict, field: str) -> None:
    if field not in patch or patch[field] is None:
        return
    urls = patch[field]
    if not isinstance(urls, list) or not all(isinstance(u, str) for u in urls):
        raise ValidationError(f"{field} must be a list of URLs")
    for url in urls:
        enforce_url({field: url}, field)


def enforce_rules_banner(patch: dict, *, current: dict | None = None) -> None:
    """
    Banner form rules. The date window check runs first so an inverted window
    is reported no matter what else is wrong with the form.

    `current` holds the stored values for partial updates.
    """
    merged = dict(current or {})
    merged.update(patch)

    start, end = merged.get("start_date"), merged.get("end_date")
    if start is not None and end is not None and end <= start:
        raise ValidationError("end_date must be after start_date")

    if "title" in patch and (patch["title"] is None or len(patch["title"]) < 2):
        raise ValidationError("title must be at least 2 characters")
    if "image_url" in patch:
        enforce_url(patch, "image_url", required=True)
    enforce_non_negative(patch, "display_order")


def enforce_rules_refurbished(patch: dict, *, current: dict | None = None) -> None:
    merged = dict(current or {})
    merged.update(patch)

    for field in ("original_price_cents", "refurbished_price_cents"):
        enforce_money(patch, field)
        if field in merged and (merged[field] is None or merged[field] <= 0):
            raise ValidationError(f"{field} must be > 0")

    if "condition" in patch:
        from .models.refurbished import REFURBISHED_CONDITIONS

        if patch["condition"] not in REFURBISHED_CONDITIONS:
            raise ValidationError(
                f"condition must be one of: {', '.join(REFURBISHED_CONDITIONS)}"
            )
    enforce_non_negative(patch, "warranty_months", "in_stock")


def enforce_rules_appointment(patch: dict, *, current: dict | None = None) -> None:
    merged = dict(current or {})
    merged.update(patch)

    appointment_date = merged.get("appointment_date")
    estimated = merged.get("estimated_completion_date")
    if appointment_date is not None and estimated is not None and estimated < appointment_date:
        raise ValidationError("estimated_completion_date cannot be before appointment_date")

    actual = merged.get("actual_completion_date")
    if appointment_date is not None and actual is not None and actual < appointment_date:
        raise ValidationError("actual_completion_date cannot be before appointment_date")


def enforce_rules_product(patch: dict) -> None:
    enforce_money(patch, "base_price_cents")
    enforce_non_negative(patch, "in_stock")
    if "discount_percentage" in patch and patch["discount_percentage"] is not None:
        if not 0 <= patch["discount_percentage"] <= 100:
            raise ValidationError("discount_percentage must be between 0 and 100")
    enforce_url(patch, "image_url")
