"""
Server-side product search tests: text path, vector path, filters, facets.
"""

from decimal import Decimal

import pytest

from storefront.search import FilterOptions
from storefront.services import search_service
from storefront.services.ai_service import AIServiceError
from storefront.services.search_service import cosine_similarity, get_facets, search_products


class FakeEmbedder:
    def __init__(self, vectors, fail=False):
        self.vectors = vectors
        self.fail = fail
        self.queries = []

    def embed(self, text):
        self.queries.append(text)
        if self.fail:
            raise AIServiceError("provider down")
        return self.vectors[text]


def names(result):
    return [item["name"] for item in result["items"]]


# =============================================================================
# TEXT PATH
# =============================================================================


class TestTextSearch:

    def test_every_term_must_match_name_or_description(self, db_session, catalog):
        result = search_products("phone charger", FilterOptions())

        assert result["mode"] == "text"
        assert names(result) == ["Fast Charger"]

    def test_relevance_ranks_name_hits_first(self, db_session, catalog):
        result = search_products("charger", FilterOptions())

        # "Charger Cable" and "Fast Charger" both hit the name; ties break by name.
        assert names(result) == ["Charger Cable", "Fast Charger"]
        assert result["items"][0]["score"] == 1

    def test_repair_parts_excluded(self, db_session, catalog):
        assert search_products("screen", FilterOptions())["items"] == []

    def test_blank_query_lists_by_filters(self, db_session, catalog):
        result = search_products("", FilterOptions(sort_by="priceAsc"))
        assert names(result) == ["Charger Cable", "Leather Case", "Fast Charger"]

    def test_filters(self, db_session, catalog):
        volt = catalog["brands"]["volt"]
        result = search_products(
            "",
            FilterOptions(brand_ids=(volt.id,), in_stock_only=True),
        )
        assert names(result) == ["Charger Cable"]

        result = search_products("", FilterOptions(min_price=Decimal("20"), max_price=Decimal("30")))
        assert names(result) == ["Leather Case"]

    def test_pagination_envelope(self, db_session, catalog):
        result = search_products("", FilterOptions(sort_by="nameAsc"), page=2, per_page=2)

        assert names(result) == ["Leather Case"]
        assert result["pagination"] == {
            "page": 2,
            "per_page": 2,
            "total": 3,
            "total_pages": 2,
            "has_next": False,
            "has_prev": True,
        }

    def test_items_carry_display_fields(self, db_session, catalog):
        item = search_products("leather", FilterOptions())["items"][0]
        assert item["brand_name"] == "Acme"
        assert item["variant_count"] == 0


# =============================================================================
# VECTOR PATH
# =============================================================================


class TestVectorSearch:

    def _embed_catalog(self, db_session, catalog):
        products = catalog["products"]
        products["case"].embedding = [1.0, 0.0]
        products["charger"].embedding = [0.0, 1.0]
        products["cable"].embedding = [0.6, 0.8]
        db_session.commit()

    def test_ranks_by_similarity_above_threshold(self, db_session, catalog, monkeypatch):
        self._embed_catalog(db_session, catalog)
        embedder = FakeEmbedder({"power": [0.0, 1.0]})
        monkeypatch.setattr(search_service, "get_ai_client", lambda: embedder)

        result = search_products("power", FilterOptions())

        assert result["mode"] == "vector"
        assert names(result) == ["Fast Charger", "Charger Cable"]
        assert result["items"][0]["score"] == pytest.approx(1.0)

    def test_provider_failure_falls_back_to_text(self, db_session, catalog, monkeypatch):
        self._embed_catalog(db_session, catalog)
        monkeypatch.setattr(search_service, "get_ai_client", lambda: FakeEmbedder({}, fail=True))

        result = search_products("leather", FilterOptions())

        assert result["mode"] == "text"
        assert names(result) == ["Leather Case"]

    def test_no_match_falls_back_to_text(self, db_session, catalog, monkeypatch):
        self._embed_catalog(db_session, catalog)
        embedder = FakeEmbedder({"leather": [-1.0, 0.0]})
        monkeypatch.setattr(search_service, "get_ai_client", lambda: embedder)

        result = search_products("leather", FilterOptions())

        assert result["mode"] == "text"
        assert names(result) == ["Leather Case"]

    def test_cosine_similarity_edge_cases(self):
        assert cosine_similarity([], [1.0]) == 0.0
        assert cosine_similarity([0.0, 0.0], [1.0, 1.0]) == 0.0
        assert cosine_similarity([1.0, 0.0], [1.0, 0.0]) == pytest.approx(1.0)


# =============================================================================
# FACETS / ROUTES
# =============================================================================


class TestFacetsAndRoutes:

    def test_facets_default_price_range_when_empty(self, db_session):
        assert get_facets() == {"brands": [], "categories": [], "price_range": {"min": 0, "max": 1000}}

    def test_facets_from_catalog(self, db_session, catalog):
        facets = get_facets()
        assert [b["name"] for b in facets["brands"]] == ["Acme", "Volt"]
        assert facets["price_range"] == {"min": 15, "max": 40}

    def test_search_endpoint(self, client, db_session, catalog):
        resp = client.get("/api/search?q=charger&inStock=true")
        assert resp.status_code == 200
        assert names(resp.json) == ["Charger Cable"]

    @pytest.mark.parametrize(
        "query",
        ["minPrice=abc", "brands=1,x", "sort=random", "page=0", "per_page=500", "minPrice=9&maxPrice=1"],
    )
    def test_malformed_params_rejected(self, client, db_session, query):
        resp = client.get(f"/api/search?q=case&{query}")
        assert resp.status_code == 400

    def test_facets_endpoint(self, client, db_session):
        resp = client.get("/api/search/facets")
        assert resp.status_code == 200
        assert resp.json["price_range"] == {"min": 0, "max": 1000}
