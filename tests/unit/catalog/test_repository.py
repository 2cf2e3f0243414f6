"""Unit tests for ProductDjangoRepository stock operations."""

from __future__ import annotations

from uuid import uuid4

import pytest
from django.db import IntegrityError, transaction

from modules.catalog.models import ProductVariant
from modules.catalog.repositories.django_repository import ProductDjangoRepository

pytestmark = pytest.mark.unit


@pytest.fixture()
def repo():
    return ProductDjangoRepository()


class TestGetStock:
    def test_returns_variant_stock(self, repo, make_product):
        tee = make_product(stock={"M": 7})
        assert repo.get_stock(tee.id, "M") == 7

    def test_size_lookup_is_case_insensitive(self, repo, make_product):
        tee = make_product(stock={"XL": 2})
        assert repo.get_stock(tee.id, " xl ") == 2

    def test_missing_variant_is_zero(self, repo, make_product):
        tee = make_product(stock={"M": 7})
        assert repo.get_stock(tee.id, "S") == 0
        assert repo.get_stock(uuid4(), "") == 0

    def test_soft_deleted_product_is_zero(self, repo, make_product):
        tee = make_product(stock={"M": 7})
        tee.delete()
        assert repo.get_stock(tee.id, "M") == 0


class TestDecrementStock:
    def test_decrements_when_enough(self, repo, make_product, stock):
        tee = make_product(stock={"M": 5})
        assert repo.decrement_stock(tee.id, "M", 5) is True
        assert stock(tee, "M") == 0

    def test_refuses_to_overdraw(self, repo, make_product, stock):
        tee = make_product(stock={"M": 2})
        assert repo.decrement_stock(tee.id, "M", 3) is False
        assert stock(tee, "M") == 2

    def test_inactive_product_is_not_decremented(self, repo, make_product, stock):
        tee = make_product(stock={"M": 5}, status="inactive")
        assert repo.decrement_stock(tee.id, "M", 1) is False
        assert stock(tee, "M") == 5

    def test_quantity_must_be_positive(self, repo, make_product):
        tee = make_product(stock={"M": 5})
        with pytest.raises(ValueError):
            repo.decrement_stock(tee.id, "M", 0)

    def test_stale_read_cannot_overdraw(self, repo, make_product, stock):
        """Two callers that both saw stock=5 cannot both take 3."""
        tee = make_product(stock={"M": 5})
        seen_by_first = repo.get_stock(tee.id, "M")
        seen_by_second = repo.get_stock(tee.id, "M")
        assert seen_by_first == seen_by_second == 5

        assert repo.decrement_stock(tee.id, "M", 3) is True
        assert repo.decrement_stock(tee.id, "M", 3) is False
        assert stock(tee, "M") == 2


class TestIncrementStock:
    def test_increments(self, repo, make_product, stock):
        tee = make_product(stock={"M": 1})
        assert repo.increment_stock(tee.id, "M", 4) is True
        assert stock(tee, "M") == 5

    def test_missing_variant_returns_false(self, repo):
        assert repo.increment_stock(uuid4(), "M", 1) is False


class TestConstraints:
    def test_negative_stock_rejected_by_database(self, make_product):
        tee = make_product(stock={"M": 1})
        with pytest.raises(IntegrityError), transaction.atomic():
            ProductVariant.objects.filter(product=tee).update(stock_quantity=-1)

    def test_duplicate_size_rejected(self, make_product):
        tee = make_product(stock={"M": 1})
        with pytest.raises(IntegrityError), transaction.atomic():
            ProductVariant.objects.create(
                product=tee, size="m", price="5.00", stock_quantity=1
            )


class TestQueries:
    def test_get_by_sku_is_case_insensitive(self, repo, make_product):
        tee = make_product(sku="TEE-RED")
        assert repo.get_by_sku(" tee-red ") == tee

    def test_get_by_id_hides_deleted(self, repo, make_product):
        tee = make_product()
        tee.delete()
        assert repo.get_by_id(str(tee.id)) is None

    def test_get_by_id_with_invalid_id(self, repo):
        assert repo.get_by_id("nope") is None

    def test_list_with_filters(self, repo, make_product):
        make_product(category="hoodies")
        tee = make_product(category="t-shirts")
        assert repo.list({"category": "t-shirts"}) == [tee]
