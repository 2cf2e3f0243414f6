from __future__ import annotations

import random
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand

from modules.cart.dtos import AddCartLineDTO
from modules.cart.repositories.django_repository import CartDjangoRepository
from modules.cart.services import CartService
from modules.catalog.models import Product, ProductVariant
from modules.catalog.repositories.django_repository import ProductDjangoRepository
from modules.core.context import RequestContext, Role
from modules.inventory.exceptions import InsufficientStock
from modules.orders.constants import OrderStatus
from modules.orders.dtos import CashOnDelivery, CreateOrderDTO
from modules.orders.models import Order
from modules.orders.services import build_order_service

APPAREL_SIZES = ("S", "M", "L", "XL")

CATALOG = [
    ("TEE-001", "Basic Tee", "t-shirts", Decimal("19.90"), True),
    ("TEE-002", "Graphic Tee", "t-shirts", Decimal("24.90"), True),
    ("HOOD-001", "Zip Hoodie", "hoodies", Decimal("59.90"), True),
    ("HOOD-002", "Pullover Hoodie", "hoodies", Decimal("54.90"), True),
    ("JEAN-001", "Slim Jeans", "jeans", Decimal("69.90"), True),
    ("CAP-001", "Baseball Cap", "accessories", Decimal("14.90"), False),
    ("BAG-001", "Canvas Tote", "accessories", Decimal("12.50"), False),
    ("SOCK-001", "Crew Socks (3 pack)", "accessories", Decimal("9.90"), False),
]

SHOPPERS = ("alice", "bruno", "carla", "daniel", "elena")


class Command(BaseCommand):
    help = "Seed database with realistic development data."

    def handle(self, *args, **options):
        random.seed(42)
        self.stdout.write("Seeding development data...")

        users_created = self._seed_users()
        products = self._seed_products()
        orders_created = self._seed_orders(products)

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"users={users_created}, "
                f"products={len(products)}, "
                f"orders={orders_created}"
            )
        )

    def _seed_users(self) -> int:
        User = get_user_model()
        created = 0
        if not User.objects.filter(username="admin").exists():
            User.objects.create_superuser("admin", password="admin123")
            created += 1
        for username in SHOPPERS:
            if not User.objects.filter(username=username).exists():
                User.objects.create_user(username, password=f"{username}123")
                created += 1
        return created

    def _seed_products(self) -> list[Product]:
        self.stdout.write("Creating products...")
        products: list[Product] = []
        for sku, title, category, price, sized in CATALOG:
            product, created = Product.objects.get_or_create(
                sku=sku,
                defaults={
                    "title": title,
                    "summary": f"{title} from the core collection.",
                    "category": category,
                    "featured": random.random() < 0.3,
                },
            )
            if created:
                for size in APPAREL_SIZES if sized else ("",):
                    ProductVariant.objects.create(
                        product=product,
                        size=size,
                        price=price,
                        stock_quantity=random.randint(5, 60),
                    )
            products.append(product)
        self.stdout.write(self.style.SUCCESS("Creating products... Done!"))
        return products

    def _seed_orders(self, products: list[Product]) -> int:
        """Place cash-on-delivery orders through the services so stock and
        reservations stay consistent, then move some along the pipeline."""
        self.stdout.write("Creating orders...")
        if Order.objects.filter(notes__startswith="Seed order").exists():
            self.stdout.write(self.style.WARNING("Skipping orders (already seeded)."))
            return 0

        User = get_user_model()
        products_repo = ProductDjangoRepository()
        cart = CartService(
            cart_repository=CartDjangoRepository(),
            product_repository=products_repo,
        )
        orders = build_order_service()
        admin = RequestContext(user_id="seed-admin", role=Role.ADMIN)
        follow_ups = [
            None,
            OrderStatus.PROCESSING,
            OrderStatus.SHIPPED,
            OrderStatus.DELIVERED,
            OrderStatus.CANCELLED,
        ]

        created = 0
        for i in range(20):
            shopper = User.objects.get(username=random.choice(SHOPPERS))
            ctx = RequestContext.from_user(shopper)
            cart.clear(ctx)
            for product in random.sample(products, k=random.randint(1, 3)):
                variant = random.choice(list(product.variants.all()))
                cart.add_line(
                    ctx,
                    AddCartLineDTO(
                        product_id=product.id,
                        size=variant.size,
                        quantity=random.randint(1, 3),
                    ),
                )

            try:
                order = orders.create_order(
                    ctx,
                    CreateOrderDTO(
                        payment=CashOnDelivery(),
                        address=f"{i + 1} Seed Street, Springfield",
                        notes=f"Seed order {i + 1}",
                    ),
                )
            except InsufficientStock as exc:
                self.stdout.write(self.style.WARNING(f"Skipped: {exc}"))
                cart.clear(ctx)
                continue

            target = random.choice(follow_ups)
            if target is not None:
                orders.update_status(admin, str(order.id), target)
            created += 1

        self.stdout.write(self.style.SUCCESS("Creating orders... Done!"))
        return created
