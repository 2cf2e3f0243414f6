"""Product catalog: products and their size variants.

Rules:
- SKU is unique and stored upper-case.
- Each sellable size is a ``ProductVariant`` with its own price and stock.
  Products without sizes carry one variant with the empty size.
- Variant price is greater than zero and stock is never negative; both are
  database check constraints, so a guarded decrement that would overdraw
  simply matches no row.
- Products are soft-deleted; inactive or deleted products cannot be sold.
"""

from __future__ import annotations

from decimal import Decimal

import structlog
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import BaseModel, SoftDeleteModel

logger = structlog.get_logger(__name__)

DEFAULT_SIZE = ""


def normalise_size(size: str | None) -> str:
    """Sizes are compared case-insensitively; ``None`` means one-size."""
    return (size or DEFAULT_SIZE).strip().upper()


class ProductStatus(models.TextChoices):
    ACTIVE = "active", "Active"
    INACTIVE = "inactive", "Inactive"


class Product(SoftDeleteModel):
    """Catalog entry.  Price and stock live on the variants."""

    sku = models.CharField(max_length=64, unique=True)
    title = models.CharField(max_length=255)
    summary = models.CharField(max_length=500, blank=True, default="")
    description = models.TextField(blank=True, default="")
    image = models.URLField(max_length=500, blank=True, default="")
    category = models.CharField(max_length=100, blank=True, default="", db_index=True)
    featured = models.BooleanField(default=False)
    status = models.CharField(
        max_length=20,
        choices=ProductStatus.choices,
        default=ProductStatus.ACTIVE,
    )

    class Meta:
        db_table = "products"
        ordering = ["title"]
        indexes = [
            models.Index(fields=["status"], name="products_status_idx"),
        ]

    def clean(self) -> None:
        super().clean()
        if self.sku:
            self.sku = self.sku.strip().upper()

    def save(self, *args, **kwargs) -> None:
        is_new = self._state.adding
        if self.sku:
            self.sku = self.sku.strip().upper()
        super().save(*args, **kwargs)
        if is_new:
            logger.info("product_created", product_id=str(self.id), sku=self.sku)

    def __str__(self) -> str:
        return f"{self.sku} - {self.title}"


class ProductVariant(BaseModel):
    """One sellable size of a product with its own price and stock."""

    product = models.ForeignKey(
        "catalog.Product",
        on_delete=models.CASCADE,
        related_name="variants",
    )
    size = models.CharField(max_length=32, blank=True, default=DEFAULT_SIZE)
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
    )
    stock_quantity = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = "product_variants"
        ordering = ["product_id", "size"]
        constraints = [
            models.UniqueConstraint(
                fields=["product", "size"],
                name="product_variants_product_size_uniq",
            ),
            models.CheckConstraint(
                condition=models.Q(price__gt=0),
                name="product_variants_price_positive",
            ),
            models.CheckConstraint(
                condition=models.Q(stock_quantity__gte=0),
                name="product_variants_stock_non_negative",
            ),
        ]

    def clean(self) -> None:
        super().clean()
        if self.price is not None and self.price <= 0:
            raise ValidationError({"price": "Price must be greater than zero."})
        if self.stock_quantity is not None and self.stock_quantity < 0:
            raise ValidationError(
                {"stock_quantity": "Stock quantity cannot be negative."}
            )

    def save(self, *args, **kwargs) -> None:
        self.size = normalise_size(self.size)
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        label = self.size or "one size"
        return f"{self.product_id} [{label}] stock={self.stock_quantity}"
