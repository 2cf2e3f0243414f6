"""Concurrent checkouts against a real database.

Eight shoppers race for the last three units, each on its own thread and
connection.  Under the test settings SQLite runs from a file with
``IMMEDIATE`` transactions, so checkouts queue on the write lock; point
``DATABASE_URL`` at MySQL to exercise the row locks instead.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import pytest
from django.contrib.auth import get_user_model
from django.db import connections

from modules.cart.dtos import AddCartLineDTO
from modules.cart.repositories.django_repository import CartDjangoRepository
from modules.cart.services import CartService
from modules.catalog.models import Product, ProductVariant
from modules.catalog.repositories.django_repository import ProductDjangoRepository
from modules.core.context import RequestContext
from modules.inventory.exceptions import InsufficientStock
from modules.orders.constants import OrderStatus
from modules.orders.dtos import CashOnDelivery, CreateOrderDTO
from modules.orders.models import Order
from modules.orders.services import build_order_service

pytestmark = [pytest.mark.integration, pytest.mark.django_db(transaction=True)]

SHOPPERS = 8


def _checkout(ctx: RequestContext) -> str:
    try:
        build_order_service().create_order(
            ctx, CreateOrderDTO(payment=CashOnDelivery(), address="x")
        )
        return "ok"
    except InsufficientStock:
        return "short"
    finally:
        connections.close_all()


def test_last_unit_is_sold_once():
    product = Product.objects.create(sku="LAST", title="Last one")
    ProductVariant.objects.create(product=product, size="", price="10.00", stock_quantity=3)

    User = get_user_model()
    cart = CartService(CartDjangoRepository(), ProductDjangoRepository())
    contexts = []
    for n in range(SHOPPERS):
        ctx = RequestContext.from_user(User.objects.create_user(f"buyer{n}"))
        cart.add_line(ctx, AddCartLineDTO(product_id=product.id, quantity=1))
        contexts.append(ctx)

    with ThreadPoolExecutor(max_workers=SHOPPERS) as pool:
        outcomes = list(pool.map(_checkout, contexts))

    assert outcomes.count("ok") == 3
    assert outcomes.count("short") == SHOPPERS - 3
    assert ProductVariant.objects.get(product=product).stock_quantity == 0
    assert Order.objects.filter(status=OrderStatus.RECEIVED).count() == 3
