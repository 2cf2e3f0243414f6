"""Catalog API: public reads, administrator writes."""

from __future__ import annotations

import pytest

from modules.catalog.models import Product

pytestmark = pytest.mark.integration

PRODUCTS_URL = "/api/v1/products/"

NEW_PRODUCT = {
    "sku": "tee-100",
    "title": "Heavy Tee",
    "category": "t-shirts",
    "variants": [
        {"size": "m", "price": "24.90", "stock_quantity": 5},
        {"size": "l", "price": "24.90", "stock_quantity": 3},
    ],
}


class TestPublicReads:
    def test_list_is_public_and_paginated(self, api_client, make_product):
        make_product(title="Cap")
        make_product(title="Tote")

        response = api_client.get(PRODUCTS_URL)

        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 2
        assert {p["title"] for p in data["results"]} == {"Cap", "Tote"}
        assert "variants" in data["results"][0]

    def test_deleted_products_are_hidden(self, api_client, make_product):
        make_product().delete()
        assert api_client.get(PRODUCTS_URL).json()["count"] == 0

    def test_filter_by_size_and_category(self, api_client, make_product):
        make_product(title="Hoodie", category="hoodies", stock={"M": 1})
        make_product(title="Tee", category="t-shirts", stock={"M": 1})
        make_product(title="Cap", category="hoodies", stock={"": 1})

        response = api_client.get(PRODUCTS_URL, {"category": "hoodies", "size": "m"})

        assert [p["title"] for p in response.json()["results"]] == ["Hoodie"]

    def test_search(self, api_client, make_product):
        make_product(title="Zip Hoodie")
        make_product(title="Canvas Tote")

        response = api_client.get(PRODUCTS_URL, {"search": "hood"})

        assert [p["title"] for p in response.json()["results"]] == ["Zip Hoodie"]

    def test_retrieve(self, api_client, make_product):
        product = make_product(stock={"S": 2}, price="15.00")

        response = api_client.get(f"{PRODUCTS_URL}{product.id}/")

        assert response.status_code == 200
        variant = response.json()["variants"][0]
        assert variant["size"] == "S"
        assert variant["price"] == "15.00"
        assert variant["stock_quantity"] == 2

    def test_retrieve_unknown(self, api_client):
        response = api_client.get(f"{PRODUCTS_URL}01890000-0000-7000-8000-000000000000/")
        assert response.status_code == 404


class TestAdminWrites:
    def test_create(self, admin_client):
        response = admin_client.post(PRODUCTS_URL, NEW_PRODUCT, format="json")

        assert response.status_code == 201
        data = response.json()
        assert data["sku"] == "TEE-100"
        assert sorted(v["size"] for v in data["variants"]) == ["L", "M"]

    def test_duplicate_sku(self, admin_client):
        admin_client.post(PRODUCTS_URL, NEW_PRODUCT, format="json")
        response = admin_client.post(PRODUCTS_URL, NEW_PRODUCT, format="json")
        assert response.status_code == 409

    def test_invalid_price(self, admin_client):
        payload = {**NEW_PRODUCT, "variants": [{"size": "M", "price": "0"}]}
        response = admin_client.post(PRODUCTS_URL, payload, format="json")
        assert response.status_code == 400

    def test_shopper_cannot_create(self, auth_client):
        response = auth_client.post(PRODUCTS_URL, NEW_PRODUCT, format="json")
        assert response.status_code == 403
        assert not Product.objects.exists()

    def test_anonymous_cannot_create(self, api_client):
        response = api_client.post(PRODUCTS_URL, NEW_PRODUCT, format="json")
        assert response.status_code == 401

    def test_update(self, admin_client, make_product):
        product = make_product(title="Old")

        response = admin_client.patch(
            f"{PRODUCTS_URL}{product.id}/", {"title": "New"}, format="json"
        )

        assert response.status_code == 200
        assert response.json()["title"] == "New"

    def test_set_stock(self, admin_client, make_product, stock):
        product = make_product(stock={"M": 0})

        response = admin_client.patch(
            f"{PRODUCTS_URL}{product.id}/stock/",
            {"size": "M", "stock_quantity": 25},
            format="json",
        )

        assert response.status_code == 200
        assert stock(product, "M") == 25

    def test_set_negative_stock(self, admin_client, make_product):
        product = make_product(stock={"M": 3})
        response = admin_client.patch(
            f"{PRODUCTS_URL}{product.id}/stock/",
            {"size": "M", "stock_quantity": -1},
            format="json",
        )
        assert response.status_code == 400

    def test_set_stock_for_unknown_size(self, admin_client, make_product):
        product = make_product(stock={"M": 3})
        response = admin_client.patch(
            f"{PRODUCTS_URL}{product.id}/stock/",
            {"size": "XXL", "stock_quantity": 1},
            format="json",
        )
        assert response.status_code == 404

    def test_delete(self, admin_client, make_product):
        product = make_product()

        response = admin_client.delete(f"{PRODUCTS_URL}{product.id}/")

        assert response.status_code == 204
        assert Product.objects.dead().filter(id=product.id).exists()

    def test_reprice_variant(self, admin_client, make_product):
        product = make_product(stock={"M": 4}, price="24.90")

        response = admin_client.put(
            f"{PRODUCTS_URL}{product.id}/variants/",
            {"size": "M", "price": "19.90"},
            format="json",
        )

        assert response.status_code == 200
        assert response.json()["variants"] == [
            {
                "id": response.json()["variants"][0]["id"],
                "size": "M",
                "price": "19.90",
                "stock_quantity": 4,
            }
        ]

    def test_add_variant(self, admin_client, make_product, stock):
        product = make_product(stock={"M": 4})

        response = admin_client.put(
            f"{PRODUCTS_URL}{product.id}/variants/",
            {"size": "xl", "price": "26.90", "stock_quantity": 2},
            format="json",
        )

        assert response.status_code == 200
        assert {v["size"] for v in response.json()["variants"]} == {"M", "XL"}
        assert stock(product, "XL") == 2

    def test_variant_with_zero_price(self, admin_client, make_product):
        product = make_product(stock={"M": 4})
        response = admin_client.put(
            f"{PRODUCTS_URL}{product.id}/variants/",
            {"size": "M", "price": "0.00"},
            format="json",
        )
        assert response.status_code == 400

    def test_remove_variant(self, admin_client, make_product):
        product = make_product(stock={"M": 4, "L": 1})

        response = admin_client.delete(f"{PRODUCTS_URL}{product.id}/variants/?size=L")

        assert response.status_code == 200
        assert [v["size"] for v in response.json()["variants"]] == ["M"]

    def test_remove_last_variant(self, admin_client, make_product):
        product = make_product(stock={"M": 4})
        response = admin_client.delete(f"{PRODUCTS_URL}{product.id}/variants/?size=M")
        assert response.status_code == 409

    def test_variants_require_admin(self, auth_client, make_product):
        product = make_product(stock={"M": 4})
        response = auth_client.put(
            f"{PRODUCTS_URL}{product.id}/variants/",
            {"size": "M", "price": "1.00"},
            format="json",
        )
        assert response.status_code == 403
