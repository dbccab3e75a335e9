"""
Search filter codec, storage and helper tests.
"""

import json
from decimal import Decimal

import httpx
import pytest

from storefront.search import (
    FilterHelpers,
    FilterOptions,
    FilterParseError,
    FilterStorage,
    SearchClient,
    SearchClientError,
    has_filter_params,
    parse_page,
)


# =============================================================================
# URL CODEC
# =============================================================================


class TestQueryParams:

    def test_defaults_are_omitted(self):
        assert FilterOptions().to_query_params() == {}

    def test_full_encoding(self):
        filters = FilterOptions(
            min_price=Decimal("10.5"),
            max_price=Decimal("200"),
            category_ids=(3, 1),
            brand_ids=(7,),
            in_stock_only=True,
            sort_by="priceDesc",
            condition="good",
        )
        assert filters.to_query_params() == {
            "minPrice": "10.5",
            "maxPrice": "200",
            "inStock": "true",
            "categories": "3,1",
            "brands": "7",
            "sort": "priceDesc",
            "condition": "good",
        }

    def test_decoding(self):
        filters = FilterOptions.from_query_params({
            "minPrice": "10.5",
            "categories": "3, 1,3",
            "inStock": "true",
            "sort": "nameDesc",
        })
        assert filters == FilterOptions(
            min_price=Decimal("10.5"), category_ids=(3, 1), in_stock_only=True, sort_by="nameDesc"
        )

    def test_lenient_parse_drops_malformed_values(self):
        filters = FilterOptions.from_query_params({"minPrice": "cheap", "brands": "1,x", "sort": "random"})
        assert filters == FilterOptions()

    @pytest.mark.parametrize(
        "params",
        [
            {"minPrice": "cheap"},
            {"maxPrice": "-5"},
            {"brands": "1,x"},
            {"inStock": "maybe"},
            {"sort": "random"},
            {"minPrice": "200", "maxPrice": "100"},
        ],
    )
    def test_strict_parse_rejects(self, params):
        with pytest.raises(FilterParseError):
            FilterOptions.from_query_params(params, strict=True)

    def test_price_cents_round_half_up(self):
        filters = FilterOptions(min_price=Decimal("0.005"), max_price=Decimal("19.994"))
        assert filters.min_price_cents == 1
        assert filters.max_price_cents == 1999

    def test_has_filter_params(self):
        assert not has_filter_params({"q": "case", "page": "2"})
        assert has_filter_params({"q": "case", "brands": "1"})
        assert not has_filter_params({"brands": ""})

    @pytest.mark.parametrize("raw,expected", [(None, 1), ("", 1), ("3", 3), ("0", 1), ("abc", 1)])
    def test_parse_page_lenient(self, raw, expected):
        params = {} if raw is None else {"page": raw}
        assert parse_page(params) == expected

    def test_parse_page_strict(self):
        with pytest.raises(FilterParseError):
            parse_page({"page": "0"}, strict=True)


# =============================================================================
# STORAGE
# =============================================================================


class TestFilterStorage:

    def test_save_uses_camel_case_shape(self):
        store = {}
        FilterStorage(store).save(FilterOptions(max_price=Decimal("99.5"), brand_ids=(2,), in_stock_only=True))

        assert json.loads(store["searchFilters"]) == {
            "sortBy": "relevance",
            "maxPrice": 99.5,
            "brandIds": [2],
            "inStockOnly": True,
        }

    def test_load_ignores_bad_fields(self):
        store = {"searchFilters": json.dumps({
            "sortBy": "bogus",
            "minPrice": "ten",
            "brandIds": [1, "2", True, 3],
            "inStockOnly": "yes",
        })}

        assert FilterStorage(store).load() == FilterOptions(brand_ids=(1, 3))

    def test_load_missing_and_non_object(self):
        assert FilterStorage({}).load() is None
        assert FilterStorage({"searchFilters": "[1, 2]"}).load() is None

    def test_clear(self):
        store = {"searchFilters": "{}"}
        FilterStorage(store).clear()
        assert store == {}


# =============================================================================
# HELPERS
# =============================================================================


class TestFilterHelpers:

    def test_toggle(self):
        ids = FilterHelpers.toggle_item((), 4, True)
        ids = FilterHelpers.toggle_item(ids, 4, True)
        assert ids == (4,)
        assert FilterHelpers.toggle_item(ids, 4, False) == ()

    def test_selected(self):
        assert FilterHelpers.is_item_selected((1, 2), 2)
        assert not FilterHelpers.is_item_selected(None, 2)

    def test_reset_keeps_sort(self):
        filters = FilterOptions(min_price=Decimal("5"), brand_ids=(1,), sort_by="oldest")
        assert FilterHelpers.reset_filters(filters) == FilterOptions(sort_by="oldest")


# =============================================================================
# HTTP CLIENT
# =============================================================================


class TestSearchClient:

    def test_sends_filters_and_parses_page(self):
        seen = {}

        def handler(request):
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json={
                "items": [{"id": 1}],
                "count": 1,
                "pagination": {"page": 2, "per_page": 16, "total": 17, "total_pages": 2},
                "mode": "vector",
            })

        client = SearchClient("http://shop.test/", transport=httpx.MockTransport(handler))
        page = client("case", FilterOptions(brand_ids=(3,)), 2, 16)

        assert seen["params"] == {"q": "case", "brands": "3", "per_page": "16", "page": "2"}
        assert page.total == 17
        assert page.total_pages == 2
        assert page.mode == "vector"

    def test_http_error_raises_client_error(self):
        client = SearchClient(
            "http://shop.test",
            transport=httpx.MockTransport(lambda request: httpx.Response(500, json={"error": "boom"})),
        )
        with pytest.raises(SearchClientError, match="HTTP 500"):
            client.search("case", FilterOptions())
