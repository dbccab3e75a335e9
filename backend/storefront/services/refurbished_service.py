# Overview: Service-layer operations for refurbished devices and their image galleries.

from __future__ import annotations

import logging

from ..extensions import db
from ..models import Brand, Category, DeviceModel, RefurbishedProduct, RefurbishedProductImage
from ..validation import NotFoundError, ValidationError, enforce_url
from .concurrency import atomic, lock_for_update
from .products_service import paginate

logger = logging.getLogger(__name__)

REFURBISHED_MUTABLE_FIELDS = {
    "name",
    "description",
    "condition",
    "original_price_cents",
    "refurbished_price_cents",
    "warranty_months",
    "in_stock",
    "is_featured",
    "brand_id",
    "category_id",
    "compatible_with_model_id",
    "refurbishment_date",
}

SORTS = {
    "newest": (RefurbishedProduct.created_at.desc(), RefurbishedProduct.id.desc()),
    "oldest": (RefurbishedProduct.created_at.asc(), RefurbishedProduct.id.asc()),
    "priceAsc": (RefurbishedProduct.refurbished_price_cents.asc(), RefurbishedProduct.id.asc()),
    "priceDesc": (RefurbishedProduct.refurbished_price_cents.desc(), RefurbishedProduct.id.desc()),
    "nameAsc": (RefurbishedProduct.name.asc(), RefurbishedProduct.id.asc()),
    "nameDesc": (RefurbishedProduct.name.desc(), RefurbishedProduct.id.desc()),
}


def compute_discount_percentage(original_cents: int, refurbished_cents: int) -> int:
    """round((original - refurbished) / original * 100), clamped to [0, 100]."""
    if not original_cents or original_cents <= 0:
        return 0
    pct = round((original_cents - refurbished_cents) / original_cents * 100)
    return max(0, min(100, pct))


def _require_refs(patch: dict) -> None:
    refs = (
        ("brand_id", Brand),
        ("category_id", Category),
        ("compatible_with_model_id", DeviceModel),
    )
    for field, model in refs:
        if patch.get(field) is not None and db.session.get(model, patch[field]) is None:
            raise ValidationError(f"{field} does not reference an existing row")


def _apply(product: RefurbishedProduct, patch: dict) -> None:
    for key, value in patch.items():
        if key in REFURBISHED_MUTABLE_FIELDS:
            setattr(product, key, value)
    product.discount_percentage = compute_discount_percentage(
        product.original_price_cents, product.refurbished_price_cents
    )


def list_refurbished(
    *,
    brand_ids: list[int] | None = None,
    category_ids: list[int] | None = None,
    model_id: int | None = None,
    condition: str | None = None,
    min_price_cents: int | None = None,
    max_price_cents: int | None = None,
    in_stock_only: bool = False,
    featured_only: bool = False,
    sort_by: str = "newest",
    page: int | None = None,
    per_page: int | None = None,
) -> dict:
    query = db.session.query(RefurbishedProduct)
    if brand_ids:
        query = query.filter(RefurbishedProduct.brand_id.in_(brand_ids))
    if category_ids:
        query = query.filter(RefurbishedProduct.category_id.in_(category_ids))
    if model_id is not None:
        query = query.filter(RefurbishedProduct.compatible_with_model_id == model_id)
    if condition:
        query = query.filter(RefurbishedProduct.condition == condition)
    if min_price_cents is not None:
        query = query.filter(RefurbishedProduct.refurbished_price_cents >= min_price_cents)
    if max_price_cents is not None:
        query = query.filter(RefurbishedProduct.refurbished_price_cents <= max_price_cents)
    if in_stock_only:
        query = query.filter(RefurbishedProduct.in_stock > 0)
    if featured_only:
        query = query.filter(RefurbishedProduct.is_featured.is_(True))

    query = query.order_by(*SORTS.get(sort_by, SORTS["newest"]))
    return paginate(query, page, per_page, default_per_page=16)


def get_refurbished(product_id: int) -> dict:
    product = db.session.get(RefurbishedProduct, product_id)
    if product is None:
        raise NotFoundError("Refurbished product not found")
    return product.to_dict()


def create_refurbished(*, patch: dict, image_urls: list[str] | None = None) -> dict:
    """Create a listing; the first of `image_urls` becomes the primary image."""
    _require_refs(patch)
    for url in image_urls or []:
        enforce_url({"image_url": url}, "image_url", required=True)

    with atomic():
        product = RefurbishedProduct()
        _apply(product, patch)
        db.session.add(product)
        for index, url in enumerate(image_urls or []):
            product.images.append(RefurbishedProductImage(image_url=url, is_primary=index == 0))
        db.session.flush()

    return product.to_dict()


def update_refurbished(product_id: int, *, patch: dict) -> dict:
    _require_refs(patch)
    with atomic():
        product = lock_for_update(
            db.session.query(RefurbishedProduct).filter(RefurbishedProduct.id == product_id)
        ).first()
        if product is None:
            raise NotFoundError("Refurbished product not found")
        _apply(product, patch)
    return product.to_dict()


def delete_refurbished(product_id: int) -> bool:
    product = db.session.get(RefurbishedProduct, product_id)
    if product is None:
        return False
    db.session.delete(product)
    db.session.commit()
    return True


# =============================================================================
# IMAGES (exactly one primary whenever any exist)
# =============================================================================

def _locked_product(product_id: int) -> RefurbishedProduct:
    product = lock_for_update(
        db.session.query(RefurbishedProduct).filter(RefurbishedProduct.id == product_id)
    ).first()
    if product is None:
        raise NotFoundError("Refurbished product not found")
    return product


def add_image(product_id: int, *, image_url: str, is_primary: bool = False) -> dict:
    enforce_url({"image_url": image_url}, "image_url", required=True)
    with atomic():
        product = _locked_product(product_id)
        make_primary = is_primary or not product.images
        if make_primary:
            for image in product.images:
                image.is_primary = False
        product.images.append(RefurbishedProductImage(image_url=image_url, is_primary=make_primary))
    return product.to_dict()


def set_primary_image(product_id: int, image_id: int) -> dict:
    with atomic():
        product = _locked_product(product_id)
        if not any(image.id == image_id for image in product.images):
            raise NotFoundError("Image not found")
        for image in product.images:
            image.is_primary = image.id == image_id
    return product.to_dict()


def delete_image(product_id: int, image_id: int) -> dict:
    """Remove an image; if it was primary, the oldest remaining image is promoted."""
    with atomic():
        product = _locked_product(product_id)
        target = next((image for image in product.images if image.id == image_id), None)
        if target is None:
            raise NotFoundError("Image not found")

        was_primary = target.is_primary
        product.images.remove(target)
        if was_primary and product.images:
            oldest = min(product.images, key=lambda image: image.id)
            oldest.is_primary = True
    return product.to_dict()
