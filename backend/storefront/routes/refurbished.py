# Overview: Flask API routes for refurbished devices; parses input and returns JSON responses.

from flask import Blueprint, request, current_app

from ..services import refurbished_service
from ..models import RefurbishedProduct
from ..search.filters import FilterOptions, FilterParseError, parse_page
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_refurbished,
    enforce_url_list,
    ValidationError,
    NotFoundError,
)
from ..decorators import require_admin

REFURBISHED_POLICY = ModelValidationPolicy(
    writable_fields=set(refurbished_service.REFURBISHED_MUTABLE_FIELDS),
    required_on_create={"name", "original_price_cents", "refurbished_price_cents"},
)

refurbished_bp = Blueprint("refurbished", __name__, url_prefix="/api/refurbished")


def _optional_int(raw: str | None, name: str) -> int | None:
    if raw is None or raw == "":
        return None
    if not raw.isdigit():
        raise FilterParseError(f"{name} must be an id")
    return int(raw)


@refurbished_bp.get("")
def list_refurbished():
    """
    Public listing. Query params follow the search URL codec:
    brand, category, model, condition, minPrice, maxPrice, inStock, sort, page,
    plus brands/categories id lists and featured=true.
    """
    try:
        filters = FilterOptions.from_query_params(request.args, strict=True)
        page = parse_page(request.args, strict=True)
        brand_ids = list(filters.brand_ids)
        single_brand = _optional_int(filters.brand, "brand")
        if single_brand is not None:
            brand_ids.append(single_brand)
        category_ids = list(filters.category_ids)
        single_category = _optional_int(filters.category, "category")
        if single_category is not None:
            category_ids.append(single_category)
        model_id = _optional_int(filters.model, "model")
    except FilterParseError as e:
        return {"error": str(e)}, 400

    sort_by = "newest" if filters.sort_by == "relevance" else filters.sort_by
    per_page = request.args.get("per_page", type=int)

    return refurbished_service.list_refurbished(
        brand_ids=brand_ids,
        category_ids=category_ids,
        model_id=model_id,
        condition=filters.condition,
        min_price_cents=filters.min_price_cents,
        max_price_cents=filters.max_price_cents,
        in_stock_only=filters.in_stock_only,
        featured_only=request.args.get("featured", "false").lower() == "true",
        sort_by=sort_by,
        page=page,
        per_page=per_page,
    )


@refurbished_bp.get("/<int:product_id>")
def get_refurbished(product_id: int):
    try:
        return refurbished_service.get_refurbished(product_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404


@refurbished_bp.post("")
@require_admin
def create_refurbished_route():
    """Body: refurbished fields plus optional "image_urls" (first becomes primary)."""
    payload = dict(request.get_json(silent=True) or {})
    image_urls = payload.pop("image_urls", None) or []

    try:
        patch = validate_payload(
            model=RefurbishedProduct, payload=payload, policy=REFURBISHED_POLICY, partial=False
        )
        enforce_rules_refurbished(patch)
        enforce_url_list({"image_urls": image_urls}, "image_urls")
        created = refurbished_service.create_refurbished(patch=patch, image_urls=image_urls)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except Exception:
        current_app.logger.exception("Failed to create refurbished product")
        return {"error": "Internal server error"}, 500
    return created, 201


@refurbished_bp.put("/<int:product_id>")
@require_admin
def update_refurbished_route(product_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(
            model=RefurbishedProduct, payload=payload, policy=REFURBISHED_POLICY, partial=True
        )
        existing = refurbished_service.get_refurbished(product_id)
        current = {
            "original_price_cents": existing["original_price_cents"],
            "refurbished_price_cents": existing["refurbished_price_cents"],
        }
        enforce_rules_refurbished(patch, current=current)
        return refurbished_service.update_refurbished(product_id, patch=patch)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except ValidationError as e:
        return {"error": str(e)}, 400
    except Exception:
        current_app.logger.exception("Failed to update refurbished product")
        return {"error": "Internal server error"}, 500


@refurbished_bp.delete("/<int:product_id>")
@require_admin
def delete_refurbished_route(product_id: int):
    if not refurbished_service.delete_refurbished(product_id):
        return {"error": "Refurbished product not found"}, 404
    return {"ok": True}, 200


@refurbished_bp.post("/<int:product_id>/images")
@require_admin
def add_image_route(product_id: int):
    payload = request.get_json(silent=True) or {}
    is_primary = payload.get("is_primary", False)
    if not isinstance(is_primary, bool):
        return {"error": "is_primary must be a boolean"}, 400
    try:
        return refurbished_service.add_image(
            product_id, image_url=payload.get("image_url") or "", is_primary=is_primary
        ), 201
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except ValidationError as e:
        return {"error": str(e)}, 400


@refurbished_bp.put("/<int:product_id>/images/<int:image_id>/primary")
@require_admin
def set_primary_image_route(product_id: int, image_id: int):
    try:
        return refurbished_service.set_primary_image(product_id, image_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404


@refurbished_bp.delete("/<int:product_id>/images/<int:image_id>")
@require_admin
def delete_image_route(product_id: int, image_id: int):
    try:
        return refurbished_service.delete_image(product_id, image_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404
