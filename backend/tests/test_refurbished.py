"""
Refurbished device tests: derived discount, image gallery rules, listing filters.
"""

import pytest

from storefront.models import RefurbishedProduct
from storefront.services import refurbished_service
from storefront.services.refurbished_service import compute_discount_percentage


class TestDiscount:

    @pytest.mark.parametrize(
        "original,refurbished,expected",
        [
            (100000, 75000, 25),
            (99900, 66600, 33),
            (1000, 1500, 0),
            (0, 500, 0),
        ],
    )
    def test_compute(self, original, refurbished, expected):
        assert compute_discount_percentage(original, refurbished) == expected

    def test_recomputed_on_update(self, db_session):
        created = refurbished_service.create_refurbished(
            patch={"name": "iPhone 12", "original_price_cents": 80000, "refurbished_price_cents": 60000}
        )
        assert created["discount_percentage"] == 25

        updated = refurbished_service.update_refurbished(created["id"], patch={"refurbished_price_cents": 40000})
        assert updated["discount_percentage"] == 50


class TestImages:

    def _product(self, urls):
        return refurbished_service.create_refurbished(
            patch={"name": "Pixel 6", "original_price_cents": 50000, "refurbished_price_cents": 30000},
            image_urls=urls,
        )

    def test_first_image_is_primary(self, db_session):
        product = self._product(["https://cdn.example.com/a.jpg", "https://cdn.example.com/b.jpg"])
        assert [i["is_primary"] for i in product["images"]] == [True, False]
        assert product["primary_image_url"] == "https://cdn.example.com/a.jpg"

    def test_first_added_image_becomes_primary(self, db_session):
        product = self._product([])
        result = refurbished_service.add_image(product["id"], image_url="https://cdn.example.com/a.jpg")
        assert result["images"][0]["is_primary"] is True

    def test_new_primary_clears_old(self, db_session):
        product = self._product(["https://cdn.example.com/a.jpg"])
        result = refurbished_service.add_image(
            product["id"], image_url="https://cdn.example.com/b.jpg", is_primary=True
        )
        assert [i["is_primary"] for i in result["images"]] == [False, True]

    def test_deleting_primary_promotes_oldest(self, db_session):
        product = self._product([
            "https://cdn.example.com/a.jpg",
            "https://cdn.example.com/b.jpg",
            "https://cdn.example.com/c.jpg",
        ])
        primary_id = product["images"][0]["id"]

        result = refurbished_service.delete_image(product["id"], primary_id)

        assert [(i["image_url"], i["is_primary"]) for i in result["images"]] == [
            ("https://cdn.example.com/b.jpg", True),
            ("https://cdn.example.com/c.jpg", False),
        ]

    def test_set_primary(self, db_session):
        product = self._product(["https://cdn.example.com/a.jpg", "https://cdn.example.com/b.jpg"])
        second_id = product["images"][1]["id"]

        result = refurbished_service.set_primary_image(product["id"], second_id)

        assert result["primary_image_url"] == "https://cdn.example.com/b.jpg"
        assert sum(i["is_primary"] for i in result["images"]) == 1


class TestRefurbishedRoutes:

    def _seed(self, db_session):
        db_session.add_all([
            RefurbishedProduct(name="Galaxy S20", condition="good", original_price_cents=70000,
                               refurbished_price_cents=35000, in_stock=2, is_featured=True),
            RefurbishedProduct(name="iPhone 11", condition="excellent", original_price_cents=60000,
                               refurbished_price_cents=45000, in_stock=0),
            RefurbishedProduct(name="Moto G", condition="fair", original_price_cents=20000,
                               refurbished_price_cents=9000, in_stock=5),
        ])
        db_session.commit()

    def test_filters_and_sort(self, client, db_session):
        self._seed(db_session)

        resp = client.get("/api/refurbished?maxPrice=400&sort=priceDesc")

        assert resp.status_code == 200
        assert [p["name"] for p in resp.json["items"]] == ["Galaxy S20", "Moto G"]
        assert resp.json["pagination"]["per_page"] == 16

    def test_condition_stock_and_featured(self, client, db_session):
        self._seed(db_session)

        assert [p["name"] for p in client.get("/api/refurbished?condition=fair").json["items"]] == ["Moto G"]
        in_stock = client.get("/api/refurbished?inStock=true&sort=nameAsc").json["items"]
        assert [p["name"] for p in in_stock] == ["Galaxy S20", "Moto G"]
        featured = client.get("/api/refurbished?featured=true").json["items"]
        assert [p["name"] for p in featured] == ["Galaxy S20"]

    def test_negative_per_page_is_clamped(self, client, db_session):
        self._seed(db_session)

        resp = client.get("/api/refurbished?per_page=-5&page=2&sort=priceAsc")

        assert resp.status_code == 200
        assert resp.json["pagination"]["per_page"] == 1
        assert resp.json["pagination"]["total_pages"] == 3
        assert [p["name"] for p in resp.json["items"]] == ["Galaxy S20"]

    def test_malformed_filter_is_400(self, client, db_session):
        assert client.get("/api/refurbished?minPrice=cheap").status_code == 400
        assert client.get("/api/refurbished?brand=apple").status_code == 400

    def test_create_validates_prices(self, client, db_session, admin_headers):
        resp = client.post(
            "/api/refurbished",
            json={"name": "Pixel", "original_price_cents": 0, "refurbished_price_cents": 100},
            headers=admin_headers,
        )
        assert resp.status_code == 400

    def test_create_rejects_unknown_condition(self, client, db_session, admin_headers):
        resp = client.post(
            "/api/refurbished",
            json={"name": "Pixel", "original_price_cents": 100, "refurbished_price_cents": 50, "condition": "mint"},
            headers=admin_headers,
        )
        assert resp.status_code == 400

    def test_create_with_images(self, client, db_session, admin_headers):
        resp = client.post(
            "/api/refurbished",
            json={
                "name": "Pixel",
                "original_price_cents": 40000,
                "refurbished_price_cents": 30000,
                "image_urls": ["https://cdn.example.com/p.jpg"],
            },
            headers=admin_headers,
        )
        assert resp.status_code == 201
        assert resp.json["discount_percentage"] == 25
        assert resp.json["primary_image_url"] == "https://cdn.example.com/p.jpg"
