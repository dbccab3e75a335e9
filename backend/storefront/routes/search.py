# Overview: Flask API routes for product search and filter facets.

from flask import Blueprint, request

from ..services import search_service
from ..search.filters import FilterOptions, FilterParseError, parse_page

search_bp = Blueprint("search", __name__, url_prefix="/api/search")

MAX_PER_PAGE = 100


@search_bp.get("")
def search():
    """
    Query params: q, page, per_page, minPrice, maxPrice, inStock,
    categories, brands, sort.
    """
    try:
        filters = FilterOptions.from_query_params(request.args, strict=True)
        page = parse_page(request.args, strict=True)
    except FilterParseError as e:
        return {"error": str(e)}, 400

    per_page = request.args.get("per_page", type=int)
    if per_page is not None and not 1 <= per_page <= MAX_PER_PAGE:
        return {"error": f"per_page must be between 1 and {MAX_PER_PAGE}"}, 400

    return search_service.search_products(
        request.args.get("q", ""), filters, page=page, per_page=per_page
    )


@search_bp.get("/facets")
def facets():
    return search_service.get_facets()
