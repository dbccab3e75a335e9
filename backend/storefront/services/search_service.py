# Overview: Product search (vector similarity with a text fallback) and filter facets.

"""
Product search.

VECTOR PATH: when an AI provider is configured, the query is embedded and
products with stored embeddings are ranked by cosine similarity; only matches
above SEARCH_MATCH_THRESHOLD count. Provider failure or zero matches drops
through to the text path.

TEXT PATH: every query term must appear (case-insensitive) in the name or
description. Relevance = number of terms found in the name.

Repair parts are never returned. Filters apply on both paths.
"""
from __future__ import annotations

import logging
import math

from flask import current_app
from sqlalchemy import and_, func, or_

from ..extensions import db
from ..models import Brand, Category, Product
from ..search.filters import FilterOptions
from .ai_service import AIServiceError, get_ai_client

logger = logging.getLogger(__name__)

DEFAULT_PRICE_RANGE = {"min": 0, "max": 1000}

SQL_SORTS = {
    "newest": (Product.created_at.desc(), Product.id.desc()),
    "oldest": (Product.created_at.asc(), Product.id.asc()),
    "priceAsc": (Product.base_price_cents.asc(), Product.id.asc()),
    "priceDesc": (Product.base_price_cents.desc(), Product.id.desc()),
    "nameAsc": (Product.name.asc(), Product.id.asc()),
    "nameDesc": (Product.name.desc(), Product.id.desc()),
}


def cosine_similarity(a: list[float], b: list[float]) -> float:
    if not a or not b or len(a) != len(b):
        return 0.0
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot / (norm_a * norm_b)


def apply_filters(query, filters: FilterOptions):
    query = query.filter(Product.is_repair_part.is_(False))
    if filters.min_price is not None:
        query = query.filter(Product.base_price_cents >= filters.min_price_cents)
    if filters.max_price is not None:
        query = query.filter(Product.base_price_cents <= filters.max_price_cents)
    if filters.category_ids:
        query = query.filter(Product.category_id.in_(filters.category_ids))
    if filters.brand_ids:
        query = query.filter(Product.brand_id.in_(filters.brand_ids))
    if filters.in_stock_only:
        query = query.filter(Product.in_stock > 0)
    return query


def _sort_key(sort_by: str):
    keys = {
        "newest": (lambda p: (p.created_at, p.id), True),
        "oldest": (lambda p: (p.created_at, p.id), False),
        "priceAsc": (lambda p: (p.base_price_cents, p.id), False),
        "priceDesc": (lambda p: (p.base_price_cents, p.id), True),
        "nameAsc": (lambda p: (p.name.lower(), p.id), False),
        "nameDesc": (lambda p: (p.name.lower(), p.id), True),
    }
    return keys.get(sort_by)


def _envelope(items: list[dict], total: int, page: int, per_page: int, mode: str) -> dict:
    total_pages = (total + per_page - 1) // per_page if total > 0 else 1
    return {
        "items": items,
        "count": len(items),
        "pagination": {
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
        "mode": mode,
    }


def _page_of(ranked: list, page: int, per_page: int, mode: str, scores: dict | None = None) -> dict:
    start = (page - 1) * per_page
    items = []
    for product in ranked[start:start + per_page]:
        data = product.to_dict()
        if scores is not None:
            data["score"] = scores[product.id]
        items.append(data)
    return _envelope(items, len(ranked), page, per_page, mode)


def _vector_search(query_text: str, filters: FilterOptions, page: int, per_page: int) -> dict | None:
    client = get_ai_client()
    if client is None:
        return None
    try:
        query_vector = client.embed(query_text)
    except AIServiceError as e:
        logger.warning("Vector search unavailable, falling back to text search: %s", e)
        return None

    threshold = float(current_app.config.get("SEARCH_MATCH_THRESHOLD", 0.5))
    candidates = apply_filters(db.session.query(Product), filters).filter(Product.embedding.isnot(None)).all()

    scores = {}
    for product in candidates:
        similarity = cosine_similarity(query_vector, product.embedding or [])
        if similarity > threshold:
            scores[product.id] = round(similarity, 6)

    if not scores:
        return None

    matched = [p for p in candidates if p.id in scores]
    sort = _sort_key(filters.sort_by)
    if sort is None:
        matched.sort(key=lambda p: (-scores[p.id], p.id))
    else:
        key, reverse = sort
        matched.sort(key=key, reverse=reverse)
    return _page_of(matched, page, per_page, "vector", scores)


def _text_search(query_text: str, filters: FilterOptions, page: int, per_page: int) -> dict:
    terms = [t for t in query_text.lower().split() if t]
    query = apply_filters(db.session.query(Product), filters)
    if terms:
        query = query.filter(
            and_(
                *[
                    or_(Product.name.ilike(f"%{term}%"), Product.description.ilike(f"%{term}%"))
                    for term in terms
                ]
            )
        )

    if filters.sort_by in SQL_SORTS:
        total = query.order_by(None).count()
        rows = (
            query.order_by(*SQL_SORTS[filters.sort_by])
            .offset((page - 1) * per_page)
            .limit(per_page)
            .all()
        )
        return _envelope([p.to_dict() for p in rows], total, page, per_page, "text")

    rows = query.all()
    scores = {p.id: sum(1 for term in terms if term in p.name.lower()) for p in rows}
    rows.sort(key=lambda p: (-scores[p.id], p.name.lower(), p.id))
    return _page_of(rows, page, per_page, "text", scores)


def search_products(query_text: str, filters: FilterOptions, *, page: int = 1, per_page: int | None = None) -> dict:
    """
    Search sellable products.

    Returns the list envelope (items, count, pagination) plus `mode`
    ("vector" or "text").
    """
    per_page = min(per_page or int(current_app.config.get("SEARCH_PAGE_SIZE", 16)), 100)
    page = max(page, 1)
    query_text = (query_text or "").strip()

    if query_text:
        result = _vector_search(query_text, filters, page, per_page)
        if result is not None:
            return result
    return _text_search(query_text, filters, page, per_page)


def get_facets() -> dict:
    """Brands, categories and the catalog price range (whole currency units)."""
    low, high = (
        db.session.query(func.min(Product.base_price_cents), func.max(Product.base_price_cents))
        .filter(Product.is_repair_part.is_(False))
        .one()
    )
    if low is None or high is None:
        price_range = dict(DEFAULT_PRICE_RANGE)
    else:
        price_range = {"min": low // 100, "max": -(-high // 100)}

    return {
        "brands": [b.to_dict() for b in db.session.query(Brand).order_by(Brand.name.asc()).all()],
        "categories": [c.to_dict() for c in db.session.query(Category).order_by(Category.name.asc()).all()],
        "price_range": price_range,
    }
