# Overview: Flask API routes for the product catalog; parses input and returns JSON responses.

# backend/storefront/routes/catalog.py
"""
Catalog routes: products (with variants), offers, product brands and categories.

Reads are public. Writes and AI-generated content require an admin token.
"""
from flask import Blueprint, request, current_app

from ..services import products_service
from ..services.ai_service import AIServiceError
from ..models import Brand, Category, Product
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_product,
    enforce_url,
    ValidationError,
    ConflictError,
    NotFoundError,
)
from ..decorators import require_admin

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={
        "name",
        "description",
        "base_price_cents",
        "in_stock",
        "image_url",
        "brand_id",
        "category_id",
        "is_repair_part",
        "discount_percentage",
    },
    required_on_create={"name", "base_price_cents"},
)

BRAND_POLICY = ModelValidationPolicy(
    writable_fields={"name", "image_url"},
    required_on_create={"name"},
)

CATEGORY_POLICY = ModelValidationPolicy(
    writable_fields={"name", "image_url", "parent_id"},
    required_on_create={"name"},
)

catalog_bp = Blueprint("catalog", __name__, url_prefix="/api")


# =============================================================================
# PRODUCTS
# =============================================================================

@catalog_bp.get("/products")
def list_products():
    """
    Query params:
    - page: int (optional) - page number (1-indexed). If omitted, returns all items.
    - per_page: int (optional) - items per page (default 20, max 100)
    - include_repair_parts: "true" to include repair parts (default false)
    """
    page = request.args.get("page", type=int)
    per_page = request.args.get("per_page", type=int)
    include_parts = request.args.get("include_repair_parts", "false").lower() == "true"
    return products_service.list_products(page=page, per_page=per_page, include_repair_parts=include_parts)


@catalog_bp.get("/products/offers")
def list_offers():
    page = request.args.get("page", type=int)
    per_page = request.args.get("per_page", type=int)
    return products_service.list_offers(page=page, per_page=per_page)


@catalog_bp.get("/products/<int:product_id>")
def get_product(product_id: int):
    try:
        return products_service.get_product(product_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404


@catalog_bp.post("/products")
@require_admin
def create_product_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
        enforce_rules_product(patch)
        created = products_service.create_product(patch=patch)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except Exception:
        current_app.logger.exception("Failed to create product")
        return {"error": "Internal server error"}, 500

    return created, 201


@catalog_bp.put("/products/<int:product_id>")
@require_admin
def update_product_route(product_id: int):
    """
    Update product fields and, when "variants" is present, reconcile the
    variant list in the same transaction.

    Variant entries: {id?, is_deleted?, variant_name, variant_value,
    price_adjustment_cents, stock, images}.
    """
    payload = dict(request.get_json(silent=True) or {})
    variants = payload.pop("variants", None)

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
        enforce_rules_product(patch)
        return products_service.save_product(product_id, patch=patch, variants=variants)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except ValidationError as e:
        return {"error": str(e)}, 400
    except Exception:
        current_app.logger.exception("Failed to save product")
        return {"error": "Internal server error"}, 500


@catalog_bp.delete("/products/<int:product_id>")
@require_admin
def delete_product_route(product_id: int):
    if not products_service.delete_product(product_id):
        return {"error": "Product not found"}, 404
    return {"ok": True}, 200


@catalog_bp.post("/admin/products/<int:product_id>/generate-description")
@require_admin
def generate_description_route(product_id: int):
    """Write the product description from its image using the AI provider."""
    try:
        return products_service.generate_description(product_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except ValidationError as e:
        return {"error": str(e)}, 400
    except AIServiceError as e:
        current_app.logger.warning("Description generation failed for product %s: %s", product_id, e)
        return {"error": str(e)}, 502


# =============================================================================
# BRANDS / CATEGORIES
# =============================================================================

@catalog_bp.get("/brands")
def list_brands():
    items = products_service.list_brands()
    return {"items": items, "count": len(items)}


@catalog_bp.post("/brands")
@require_admin
def create_brand_route():
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Brand, payload=payload, policy=BRAND_POLICY, partial=False)
        enforce_url(patch, "image_url")
        return products_service.create_brand(patch), 201
    except ValidationError as e:
        return {"error": str(e)}, 400
    except ConflictError as e:
        return {"error": str(e)}, 409


@catalog_bp.put("/brands/<int:brand_id>")
@require_admin
def update_brand_route(brand_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Brand, payload=payload, policy=BRAND_POLICY, partial=True)
        enforce_url(patch, "image_url")
        return products_service.update_brand(brand_id, patch)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except ValidationError as e:
        return {"error": str(e)}, 400
    except ConflictError as e:
        return {"error": str(e)}, 409


@catalog_bp.delete("/brands/<int:brand_id>")
@require_admin
def delete_brand_route(brand_id: int):
    try:
        products_service.delete_brand(brand_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except ConflictError as e:
        return {"error": str(e)}, 409
    return {"ok": True}, 200


@catalog_bp.get("/categories")
def list_categories():
    items = products_service.list_categories()
    return {"items": items, "count": len(items)}


@catalog_bp.post("/categories")
@require_admin
def create_category_route():
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=False)
        enforce_url(patch, "image_url")
        return products_service.create_category(patch), 201
    except ValidationError as e:
        return {"error": str(e)}, 400
    except ConflictError as e:
        return {"error": str(e)}, 409


@catalog_bp.put("/categories/<int:category_id>")
@require_admin
def update_category_route(category_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=True)
        enforce_url(patch, "image_url")
        return products_service.update_category(category_id, patch)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except ValidationError as e:
        return {"error": str(e)}, 400
    except ConflictError as e:
        return {"error": str(e)}, 409


@catalog_bp.delete("/categories/<int:category_id>")
@require_admin
def delete_category_route(category_id: int):
    try:
        products_service.delete_category(category_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except ConflictError as e:
        return {"error": str(e)}, 409
    return {"ok": True}, 200
