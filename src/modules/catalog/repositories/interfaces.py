"""Catalog repository contracts.

``IProductRepository`` covers the Product aggregate (with its variants);
``IStockStore`` is the narrow stock surface the reservation engine
depends on.  The stock mutators must be single conditional updates,
never a read followed by a write.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Optional
from uuid import UUID

from django.db import models

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.catalog.models import Product, ProductVariant


class IStockStore(ABC):
    """Per-variant stock counters."""

    @abstractmethod
    def get_stock(self, product_id: UUID, size: str) -> int:
        """Current stock of a sellable variant; ``0`` when it does not exist."""

    @abstractmethod
    def decrement_stock(self, product_id: UUID, size: str, quantity: int) -> bool:
        """Subtract *quantity* only if at least that much is on hand.

        Returns ``False`` (and changes nothing) when the guard fails or the
        variant is missing or not sellable.
        """

    @abstractmethod
    def increment_stock(self, product_id: UUID, size: str, quantity: int) -> bool:
        """Add *quantity* back; ``False`` when the variant no longer exists."""


class IProductRepository(IRepository["Product"], IStockStore):
    """Repository contract for the Product aggregate."""

    @abstractmethod
    def list(
        self, filters: Optional[Dict[str, Any]] = None
    ) -> "models.QuerySet[Product]":
        """List live products with optional filters."""

    @abstractmethod
    def get_by_sku(self, sku: str) -> Optional[Product]:
        """Retrieve a product by SKU."""

    @abstractmethod
    def get_variant(self, product_id: UUID, size: str) -> Optional[ProductVariant]:
        """Retrieve a sellable variant (active, not deleted product)."""

    @abstractmethod
    def save_variant(self, variant: ProductVariant) -> ProductVariant:
        """Persist a variant row."""

    @abstractmethod
    def delete_variant(self, variant: ProductVariant) -> None:
        """Remove a variant row."""
