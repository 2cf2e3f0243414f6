"""Catalog service layer (Use Cases).

Product administration: create with variants, edit descriptive fields,
add, reprice or remove sizes, set absolute stock for a size, soft delete.
Carts and orders keep their own price snapshot, so a price change only
affects lines added afterwards.  Stock movements caused by
orders do not pass through here; they go through the reservation engine
and the repository's conditional updates.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from django.db import transaction

from modules.catalog.exceptions import (
    LastVariant,
    ProductAlreadyExists,
    ProductNotFound,
)
from modules.catalog.models import Product, ProductVariant, normalise_size

if TYPE_CHECKING:
    from modules.catalog.dtos import (
        CreateProductDTO,
        SetStockDTO,
        UpdateProductDTO,
        UpsertVariantDTO,
    )
    from modules.catalog.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)

_UPDATABLE_FIELDS = (
    "title",
    "summary",
    "description",
    "image",
    "category",
    "featured",
    "status",
)


class ProductService:
    """Application service for the Product aggregate."""

    def __init__(self, repository: IProductRepository) -> None:
        self._repo = repository

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_product(self, dto: CreateProductDTO) -> Product:
        """Create a product and all of its variants.

        Raises:
            ProductAlreadyExists: the SKU is already registered.
        """
        log = logger.bind(sku=dto.sku)

        if self._repo.get_by_sku(dto.sku):
            log.warning("product.duplicate_sku")
            raise ProductAlreadyExists(f"SKU '{dto.sku}' already registered.")

        product = self._repo.save(
            Product(
                sku=dto.sku,
                title=dto.title,
                summary=dto.summary,
                description=dto.description,
                image=dto.image,
                category=dto.category,
                featured=dto.featured,
            )
        )
        for variant in dto.variants:
            self._repo.save_variant(
                ProductVariant(
                    product=product,
                    size=variant.size,
                    price=variant.price,
                    stock_quantity=variant.stock_quantity,
                )
            )

        log.info(
            "product.created",
            product_id=str(product.id),
            variant_count=len(dto.variants),
        )
        return self._repo.get_by_id(str(product.id)) or product

    @transaction.atomic
    def update_product(self, id: str, dto: UpdateProductDTO) -> Product:
        """Apply the supplied fields.

        Raises:
            ProductNotFound: the product does not exist.
        """
        product = self._repo.get_by_id(id)
        if not product:
            raise ProductNotFound(f"Product {id} not found.")

        for field in _UPDATABLE_FIELDS:
            value = getattr(dto, field)
            if value is not None:
                setattr(product, field, value)

        product = self._repo.save(product)
        logger.info("product.updated", product_id=str(id))
        return product

    @transaction.atomic
    def set_stock(self, id: str, dto: SetStockDTO) -> Product:
        """Overwrite the stock level of one size (restock / stocktake).

        Raises:
            ProductNotFound: product or size does not exist.
        """
        product = self._repo.get_by_id(id)
        if not product:
            raise ProductNotFound(f"Product {id} not found.")

        variant = self._find_variant(product, dto.size)
        if variant is None:
            raise ProductNotFound(f"Product {id} has no size '{dto.size}'.")

        previous = variant.stock_quantity
        variant.stock_quantity = dto.stock_quantity
        self._repo.save_variant(variant)

        logger.info(
            "product.stock_set",
            product_id=str(id),
            size=dto.size,
            previous=previous,
            stock_quantity=dto.stock_quantity,
        )
        return self._repo.get_by_id(id) or product

    @transaction.atomic
    def upsert_variant(self, id: str, dto: UpsertVariantDTO) -> Product:
        """Add a size, or change the price (and optionally stock) of one.

        Raises:
            ProductNotFound: the product does not exist.
        """
        product = self._repo.get_by_id(id)
        if not product:
            raise ProductNotFound(f"Product {id} not found.")

        variant = self._find_variant(product, dto.size)
        created = variant is None
        if created:
            variant = ProductVariant(product=product, size=dto.size, stock_quantity=0)
        variant.price = dto.price
        if dto.stock_quantity is not None:
            variant.stock_quantity = dto.stock_quantity
        self._repo.save_variant(variant)

        logger.info(
            "product.variant_created" if created else "product.variant_updated",
            product_id=str(id),
            size=dto.size,
            price=str(dto.price),
            stock_quantity=variant.stock_quantity,
        )
        return self._repo.get_by_id(id) or product

    @transaction.atomic
    def remove_variant(self, id: str, size: str) -> Product:
        """Stop selling one size.

        Raises:
            ProductNotFound: product or size does not exist.
            LastVariant: it is the product's only size.
        """
        product = self._repo.get_by_id(id)
        if not product:
            raise ProductNotFound(f"Product {id} not found.")

        size = normalise_size(size)
        variant = self._find_variant(product, size)
        if variant is None:
            raise ProductNotFound(f"Product {id} has no size '{size}'.")
        if len(product.variants.all()) == 1:
            raise LastVariant(f"Product {id} must keep at least one size.")

        self._repo.delete_variant(variant)
        return self._repo.get_by_id(id) or product

    @transaction.atomic
    def delete_product(self, id: str) -> None:
        """Soft-delete a product.

        Raises:
            ProductNotFound: the product does not exist.
        """
        if not self._repo.delete(id):
            raise ProductNotFound(f"Product {id} not found.")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_product(self, id: str) -> Product:
        """Raises:
        ProductNotFound: the product does not exist.
        """
        product = self._repo.get_by_id(id)
        if not product:
            raise ProductNotFound(f"Product {id} not found.")
        return product

    @staticmethod
    def _find_variant(product: Product, size: str) -> ProductVariant | None:
        return next((v for v in product.variants.all() if v.size == size), None)
