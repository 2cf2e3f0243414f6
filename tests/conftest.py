from __future__ import annotations

from decimal import Decimal
from typing import Dict, Optional

import pytest
from django.contrib.auth import get_user_model
from django.core.cache import cache
from rest_framework.test import APIClient

from modules.cart.dtos import AddCartLineDTO
from modules.cart.repositories.django_repository import CartDjangoRepository
from modules.cart.services import CartService
from modules.catalog.models import Product, ProductVariant
from modules.catalog.repositories.django_repository import ProductDjangoRepository
from modules.core.context import RequestContext, Role
from modules.inventory.repositories.django_repository import (
    ReservationDjangoRepository,
)
from modules.inventory.services import StockReservationService
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import OrderService
from modules.payments.gateways import IPaymentGateway

User = get_user_model()


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture(autouse=True)
def _clear_cache():
    """Throttle counters live in the cache; start every test from zero."""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


# ---------------------------------------------------------------------------
# Identities
# ---------------------------------------------------------------------------


@pytest.fixture()
def shopper():
    return User.objects.create_user(username="shopper", password="testpass123")


@pytest.fixture()
def other_shopper():
    return User.objects.create_user(username="other", password="testpass123")


@pytest.fixture()
def staff_user():
    return User.objects.create_user(
        username="staff", password="testpass123", is_staff=True
    )


@pytest.fixture()
def user_ctx(shopper) -> RequestContext:
    return RequestContext.from_user(shopper)


@pytest.fixture()
def other_ctx(other_shopper) -> RequestContext:
    return RequestContext.from_user(other_shopper)


@pytest.fixture()
def admin_ctx(staff_user) -> RequestContext:
    ctx = RequestContext.from_user(staff_user)
    assert ctx.role == Role.ADMIN
    return ctx


@pytest.fixture()
def auth_client(shopper) -> APIClient:
    client = APIClient()
    client.force_authenticate(user=shopper)
    return client


@pytest.fixture()
def other_client(other_shopper) -> APIClient:
    client = APIClient()
    client.force_authenticate(user=other_shopper)
    return client


@pytest.fixture()
def admin_client(staff_user) -> APIClient:
    client = APIClient()
    client.force_authenticate(user=staff_user)
    return client


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


@pytest.fixture()
def make_product():
    """Factory: ``make_product("TEE", {"M": 5, "L": 2}, price="19.90")``."""
    counter = {"n": 0}

    def _make(
        sku: Optional[str] = None,
        stock: Optional[Dict[str, int]] = None,
        price: str = "10.00",
        **fields,
    ) -> Product:
        counter["n"] += 1
        product = Product.objects.create(
            sku=sku or f"SKU-{counter['n']:03d}",
            title=fields.pop("title", f"Product {counter['n']}"),
            **fields,
        )
        for size, quantity in (stock if stock is not None else {"": 10}).items():
            ProductVariant.objects.create(
                product=product,
                size=size,
                price=Decimal(price),
                stock_quantity=quantity,
            )
        return product

    return _make


def stock_of(product: Product, size: str = "") -> int:
    return ProductVariant.objects.get(product=product, size=size).stock_quantity


@pytest.fixture()
def stock():
    return stock_of


# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------


class FakeGateway(IPaymentGateway):
    """Scripted gateway: returns ``result`` or raises it if it is an exception."""

    def __init__(self, result=True) -> None:
        self.result = result
        self.calls = []

    def confirm(self, order_id, gateway_reference, timeout=None) -> bool:
        self.calls.append((order_id, gateway_reference, timeout))
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


@pytest.fixture()
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture()
def reservation_service() -> StockReservationService:
    return StockReservationService(
        stock_store=ProductDjangoRepository(),
        reservation_repository=ReservationDjangoRepository(),
    )


@pytest.fixture()
def cart_service() -> CartService:
    return CartService(
        cart_repository=CartDjangoRepository(),
        product_repository=ProductDjangoRepository(),
    )


@pytest.fixture()
def scheduled_payments():
    return []


@pytest.fixture()
def order_service(reservation_service, gateway, scheduled_payments) -> OrderService:
    return OrderService(
        order_repository=OrderDjangoRepository(),
        cart_repository=CartDjangoRepository(),
        reservation_service=reservation_service,
        payment_gateway=gateway,
        payment_scheduler=scheduled_payments.append,
    )


@pytest.fixture()
def fill_cart(cart_service):
    """``fill_cart(ctx, (product, size, qty), ...)``"""

    def _fill(ctx: RequestContext, *lines) -> None:
        for product, size, quantity in lines:
            cart_service.add_line(
                ctx,
                AddCartLineDTO(product_id=product.id, size=size, quantity=quantity),
            )

    return _fill
