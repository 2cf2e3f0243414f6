"""Catalog listing: filters, search, ordering and page sizes."""

from __future__ import annotations

import pytest

pytestmark = pytest.mark.integration

PRODUCTS_URL = "/api/v1/products/"


@pytest.fixture()
def shelf(make_product):
    return {
        "tee": make_product(
            "TEE-001", {"M": 5, "L": 0}, price="19.90", title="Basic Tee",
            category="t-shirts", featured=True,
        ),
        "hoodie": make_product(
            "HOOD-001", {"L": 2}, price="59.90", title="Zip Hoodie",
            category="hoodies",
        ),
        "cap": make_product(
            "CAP-001", price="14.90", title="Baseball Cap", category="accessories",
        ),
    }


def _skus(response):
    assert response.status_code == 200
    return sorted(item["sku"] for item in response.json()["results"])


class TestFiltering:
    def test_by_category(self, api_client, shelf):
        response = api_client.get(PRODUCTS_URL, {"category": "HOODIES"})
        assert _skus(response) == ["HOOD-001"]

    def test_by_size_is_case_insensitive(self, api_client, shelf):
        response = api_client.get(PRODUCTS_URL, {"size": "l"})
        assert _skus(response) == ["HOOD-001", "TEE-001"]

    def test_by_price_range(self, api_client, shelf):
        response = api_client.get(PRODUCTS_URL, {"min_price": "15", "max_price": "20"})
        assert _skus(response) == ["TEE-001"]

    def test_featured_only(self, api_client, shelf):
        response = api_client.get(PRODUCTS_URL, {"featured": "true"})
        assert _skus(response) == ["TEE-001"]

    def test_search_matches_title(self, api_client, shelf):
        response = api_client.get(PRODUCTS_URL, {"search": "hoodie"})
        assert _skus(response) == ["HOOD-001"]

    def test_ordering_by_title(self, api_client, shelf):
        response = api_client.get(PRODUCTS_URL, {"ordering": "title"})
        titles = [item["title"] for item in response.json()["results"]]
        assert titles == ["Baseball Cap", "Basic Tee", "Zip Hoodie"]

    def test_deleted_products_are_hidden(self, api_client, shelf):
        shelf["cap"].delete()
        assert _skus(api_client.get(PRODUCTS_URL)) == ["HOOD-001", "TEE-001"]


class TestPagination:
    @pytest.fixture()
    def many(self, make_product):
        for _ in range(25):
            make_product()

    def test_default_page_size(self, api_client, many):
        data = api_client.get(PRODUCTS_URL).json()
        assert data["count"] == 25
        assert len(data["results"]) == 20
        assert data["next"] is not None
        assert data["previous"] is None

    def test_second_page(self, api_client, many):
        data = api_client.get(PRODUCTS_URL, {"page": 2}).json()
        assert len(data["results"]) == 5
        assert data["next"] is None

    def test_custom_page_size(self, api_client, many):
        data = api_client.get(PRODUCTS_URL, {"page_size": 10}).json()
        assert len(data["results"]) == 10

    def test_page_size_is_capped(self, api_client, make_product):
        for _ in range(105):
            make_product(stock={})
        data = api_client.get(PRODUCTS_URL, {"page_size": 1000}).json()
        assert len(data["results"]) == 100
