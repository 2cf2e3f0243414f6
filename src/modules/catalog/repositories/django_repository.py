"""Django ORM implementation of the catalog repository.

Look-ups return ``None`` for missing rows instead of raising; the service
layer decides what a missing product means.

Stock counters are only ever changed with ``QuerySet.update`` and an
``F()`` expression restricted to the variant table, so the
``stock_quantity >= quantity`` guard and the subtraction run as one SQL
statement.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional
from uuid import UUID

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from modules.catalog.models import (
    Product,
    ProductStatus,
    ProductVariant,
    normalise_size,
)
from modules.catalog.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class ProductDjangoRepository(IProductRepository):
    """Concrete catalog repository backed by Django ORM."""

    # ------------------------------------------------------------------
    # Aggregate
    # ------------------------------------------------------------------

    def get_by_id(self, id: str) -> Optional[Product]:
        try:
            return (
                Product.objects.alive()
                .prefetch_related("variants")
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Product]:
        """List live products with optional ORM look-ups, e.g.
        ``{"category": "shirts"}`` or ``{"variants__size": "M"}``."""
        queryset = Product.objects.alive().prefetch_related("variants")
        if filters:
            queryset = queryset.filter(**filters).distinct()
        return list(queryset)

    @transaction.atomic
    def save(self, entity: Product) -> Product:
        entity.save()
        logger.info("product.saved", product_id=str(entity.id), sku=entity.sku)
        return entity

    @transaction.atomic
    def delete(self, id: str) -> bool:
        product = self.get_by_id(id)
        if not product:
            return False
        product.delete()
        logger.info("product.soft_deleted", product_id=str(id))
        return True

    def get_by_sku(self, sku: str) -> Optional[Product]:
        return Product.objects.filter(sku=sku.strip().upper()).first()

    def get_variant(self, product_id: UUID, size: str) -> Optional[ProductVariant]:
        try:
            return (
                ProductVariant.objects.select_related("product")
                .filter(
                    product_id=product_id,
                    size=normalise_size(size),
                    product__status=ProductStatus.ACTIVE,
                    product__deleted_at__isnull=True,
                )
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def save_variant(self, variant: ProductVariant) -> ProductVariant:
        variant.save()
        return variant

    def delete_variant(self, variant: ProductVariant) -> None:
        # Reservations and order items keep (product_id, size), not the row.
        variant.delete()
        logger.info(
            "product.variant_deleted",
            product_id=str(variant.product_id),
            size=variant.size,
        )

    # ------------------------------------------------------------------
    # Stock store
    # ------------------------------------------------------------------

    def get_stock(self, product_id: UUID, size: str) -> int:
        variant = self.get_variant(product_id, size)
        return variant.stock_quantity if variant else 0

    def decrement_stock(self, product_id: UUID, size: str, quantity: int) -> bool:
        if quantity < 1:
            raise ValueError("Quantity must be at least 1.")
        if self.get_variant(product_id, size) is None:
            return False

        # Single UPDATE ... WHERE stock_quantity >= quantity
        updated = ProductVariant.objects.filter(
            product_id=product_id,
            size=normalise_size(size),
            stock_quantity__gte=quantity,
        ).update(
            stock_quantity=F("stock_quantity") - quantity,
            updated_at=timezone.now(),
        )
        return updated == 1

    def increment_stock(self, product_id: UUID, size: str, quantity: int) -> bool:
        if quantity < 1:
            raise ValueError("Quantity must be at least 1.")
        updated = ProductVariant.objects.filter(
            product_id=product_id,
            size=normalise_size(size),
        ).update(
            stock_quantity=F("stock_quantity") + quantity,
            updated_at=timezone.now(),
        )
        return updated == 1
