# backend/storefront/services/products_service.py
"""
Catalog service: product brands, categories, products and their variants.

VARIANTS: the editor submits the full desired variant list. Rows flagged
is_deleted are removed, rows with an id are updated, the rest are inserted.
The product update and every variant change commit together or not at all.
"""
from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Brand, Category, Product, ProductVariant, RefurbishedProduct
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    enforce_money,
    enforce_non_negative,
    enforce_url_list,
    validate_payload,
)
from .ai_service import AIServiceError, embedding_text, get_ai_client
from .concurrency import atomic, lock_for_update

logger = logging.getLogger(__name__)

PRODUCT_MUTABLE_FIELDS = {
    "name",
    "description",
    "base_price_cents",
    "in_stock",
    "image_url",
    "brand_id",
    "category_id",
    "is_repair_part",
    "discount_percentage",
}

VARIANT_POLICY = ModelValidationPolicy(
    writable_fields={"variant_name", "variant_value", "price_adjustment_cents", "stock", "images"},
    required_on_create={"variant_name", "variant_value"},
)


def paginate(query, page: int | None, per_page: int | None, *, default_per_page: int = 20) -> dict:
    """
    Apply page/per_page to a query and return the listing envelope.

    page=None returns every row without pagination metadata. per_page is
    clamped to 1..100.
    """
    if page is None:
        rows = query.all()
        return {"items": [r.to_dict() for r in rows], "count": len(rows)}

    per_page = max(1, min(per_page or default_per_page, 100))
    page = max(page, 1)

    total = query.order_by(None).count()
    total_pages = (total + per_page - 1) // per_page if total > 0 else 1
    rows = query.offset((page - 1) * per_page).limit(per_page).all()

    return {
        "items": [r.to_dict() for r in rows],
        "count": len(rows),
        "pagination": {
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }


# =============================================================================
# BRANDS / CATEGORIES
# =============================================================================

def list_brands() -> list[dict]:
    return [b.to_dict() for b in db.session.query(Brand).order_by(Brand.name.asc()).all()]


def list_categories() -> list[dict]:
    return [c.to_dict() for c in db.session.query(Category).order_by(Category.name.asc()).all()]


def _save_facet(row, patch: dict, label: str) -> dict:
    for key, value in patch.items():
        setattr(row, key, value)
    db.session.add(row)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError(f"{label} name must be unique")
    return row.to_dict()


def create_brand(patch: dict) -> dict:
    return _save_facet(Brand(), patch, "Brand")


def update_brand(brand_id: int, patch: dict) -> dict:
    brand = db.session.get(Brand, brand_id)
    if brand is None:
        raise NotFoundError("Brand not found")
    return _save_facet(brand, patch, "Brand")


def delete_brand(brand_id: int) -> None:
    with atomic():
        brand = lock_for_update(db.session.query(Brand).filter(Brand.id == brand_id)).first()
        if brand is None:
            raise NotFoundError("Brand not found")
        in_use = (
            db.session.query(Product.id).filter(Product.brand_id == brand_id).first()
            or db.session.query(RefurbishedProduct.id).filter(RefurbishedProduct.brand_id == brand_id).first()
        )
        if in_use:
            logger.info("Blocked delete of brand %s: products still reference it", brand_id)
            raise ConflictError("Cannot delete brand: products still reference it")
        db.session.delete(brand)


def create_category(patch: dict) -> dict:
    if patch.get("parent_id") is not None and db.session.get(Category, patch["parent_id"]) is None:
        raise ValidationError("parent_id does not reference an existing category")
    return _save_facet(Category(), patch, "Category")


def update_category(category_id: int, patch: dict) -> dict:
    category = db.session.get(Category, category_id)
    if category is None:
        raise NotFoundError("Category not found")
    if patch.get("parent_id") is not None:
        if patch["parent_id"] == category_id:
            raise ValidationError("A category cannot be its own parent")
        if db.session.get(Category, patch["parent_id"]) is None:
            raise ValidationError("parent_id does not reference an existing category")
    return _save_facet(category, patch, "Category")


def delete_category(category_id: int) -> None:
    with atomic():
        category = lock_for_update(db.session.query(Category).filter(Category.id == category_id)).first()
        if category is None:
            raise NotFoundError("Category not found")
        if db.session.query(Category.id).filter(Category.parent_id == category_id).first():
            raise ConflictError("Cannot delete category: it still has subcategories")
        in_use = (
            db.session.query(Product.id).filter(Product.category_id == category_id).first()
            or db.session.query(RefurbishedProduct.id).filter(RefurbishedProduct.category_id == category_id).first()
        )
        if in_use:
            logger.info("Blocked delete of category %s: products still reference it", category_id)
            raise ConflictError("Cannot delete category: products still reference it")
        db.session.delete(category)


# =============================================================================
# PRODUCTS
# =============================================================================

def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def _require_facets(patch: dict) -> None:
    if patch.get("brand_id") is not None and db.session.get(Brand, patch["brand_id"]) is None:
        raise ValidationError("brand_id does not reference an existing brand")
    if patch.get("category_id") is not None and db.session.get(Category, patch["category_id"]) is None:
        raise ValidationError("category_id does not reference an existing category")


def list_products(
    *,
    page: int | None = None,
    per_page: int | None = None,
    include_repair_parts: bool = True,
) -> dict:
    """Back-office product listing, newest first."""
    query = db.session.query(Product)
    if not include_repair_parts:
        query = query.filter(Product.is_repair_part.is_(False))
    query = query.order_by(Product.created_at.desc(), Product.id.desc())
    return paginate(query, page, per_page)


def list_offers(*, page: int | None = None, per_page: int | None = None) -> dict:
    """Discounted products, cheapest effective price first."""
    effective = Product.base_price_cents * (100 - Product.discount_percentage)
    query = (
        db.session.query(Product)
        .filter(Product.discount_percentage > 0)
        .filter(Product.is_repair_part.is_(False))
        .order_by(effective.asc(), Product.id.asc())
    )
    return paginate(query, page, per_page)


def get_product(product_id: int) -> dict:
    product = db.session.get(Product, product_id)
    if product is None:
        raise NotFoundError("Product not found")
    return product.to_dict(include_variants=True)


def create_product(*, patch: dict) -> dict:
    _require_facets(patch)
    product = Product()
    apply_product_patch(product, patch)
    db.session.add(product)
    db.session.commit()
    return product.to_dict(include_variants=True)


def delete_product(product_id: int) -> bool:
    product = db.session.get(Product, product_id)
    if product is None:
        return False
    db.session.delete(product)
    db.session.commit()
    return True


def _validate_variants(variants: list) -> list[dict]:
    """
    Validate the submitted variant list before any write.

    Returns normalized entries: {"id": int|None, "is_deleted": bool, "patch": dict}.
    """
    if not isinstance(variants, list):
        raise ValidationError("variants must be a list")

    cleaned: list[dict] = []
    for index, raw in enumerate(variants):
        if not isinstance(raw, dict):
            raise ValidationError(f"variants[{index}] must be an object")
        raw = dict(raw)
        variant_id = raw.pop("id", None)
        is_deleted = raw.pop("is_deleted", False)
        raw.pop("product_id", None)

        if variant_id is not None and (not isinstance(variant_id, int) or isinstance(variant_id, bool)):
            raise ValidationError(f"variants[{index}].id must be an integer")
        if not isinstance(is_deleted, bool):
            raise ValidationError(f"variants[{index}].is_deleted must be a boolean")

        if is_deleted:
            if variant_id is not None:
                cleaned.append({"id": variant_id, "is_deleted": True, "patch": {}})
            continue

        try:
            patch = validate_payload(
                model=ProductVariant,
                payload=raw,
                policy=VARIANT_POLICY,
                partial=variant_id is not None,
            )
            enforce_money(patch, "price_adjustment_cents", allow_negative=True)
            enforce_non_negative(patch, "stock")
            enforce_url_list(patch, "images")
        except ValidationError as e:
            raise ValidationError(f"variants[{index}]: {e}")

        cleaned.append({"id": variant_id, "is_deleted": False, "patch": patch})
    return cleaned


def save_product(product_id: int, *, patch: dict, variants: list | None = None) -> dict:
    """
    Update a product and (optionally) reconcile its variant list in one transaction.

    Raises:
        NotFoundError: product (or a referenced variant) does not exist
        ValidationError: bad payload or a variant id that belongs to another product

    Any failure rolls back the product update together with all variant changes.
    """
    cleaned = _validate_variants(variants) if variants is not None else None
    _require_facets(patch)

    with atomic():
        product = lock_for_update(db.session.query(Product).filter(Product.id == product_id)).first()
        if product is None:
            raise NotFoundError("Product not found")

        apply_product_patch(product, patch)

        if cleaned is not None:
            existing = {v.id: v for v in product.variants}
            for entry in cleaned:
                variant_id = entry["id"]
                if variant_id is not None and variant_id not in existing:
                    raise ValidationError(f"Variant {variant_id} does not belong to product {product_id}")

                if entry["is_deleted"]:
                    variant = existing.pop(variant_id)
                    product.variants.remove(variant)
                elif variant_id is not None:
                    variant = existing[variant_id]
                    for key, value in entry["patch"].items():
                        setattr(variant, key, value)
                else:
                    product.variants.append(ProductVariant(**entry["patch"]))

        db.session.flush()

    db.session.refresh(product)
    return product.to_dict(include_variants=True)


# =============================================================================
# AI-ASSISTED CONTENT
# =============================================================================

def generate_description(product_id: int) -> dict:
    """
    Ask the AI provider to write a listing description from the product image
    and store it on the product.

    Raises:
        NotFoundError: product missing
        ValidationError: product has no image to describe
        AIServiceError: provider unconfigured or failed
    """
    product = db.session.get(Product, product_id)
    if product is None:
        raise NotFoundError("Product not found")
    if not product.image_url:
        raise ValidationError("Product has no image_url to describe")

    client = get_ai_client()
    if client is None:
        raise AIServiceError("AI provider is not configured")

    description = client.describe_image(product.image_url)
    product.description = description
    db.session.commit()
    logger.info("Generated description for product %s", product_id)
    return product.to_dict(include_variants=True)


def update_embeddings(*, refresh_all: bool = False, limit: int | None = None) -> dict:
    """
    Embed name + description for products that have no embedding yet
    (or every non-repair product when refresh_all is set).

    Each product commits on its own so a provider failure midway keeps the
    vectors already stored.
    """
    client = get_ai_client()
    if client is None:
        raise AIServiceError("AI provider is not configured")

    query = db.session.query(Product).filter(Product.is_repair_part.is_(False))
    if not refresh_all:
        query = query.filter(Product.embedding.is_(None))
    query = query.order_by(Product.id.asc())
    if limit:
        query = query.limit(limit)

    updated, failed = 0, []
    for product in query.all():
        try:
            product.embedding = client.embed(embedding_text(product.name, product.description))
            db.session.commit()
            updated += 1
        except AIServiceError as e:
            db.session.rollback()
            logger.warning("Embedding failed for product %s: %s", product.id, e)
            failed.append(product.id)
    return {"updated": updated, "failed": failed}
