"""Shopping cart lines.

One row per (user, product, size); adding the same pair again merges the
quantity.  Price and descriptive fields are a snapshot taken when the line
was last added to; checkout copies it into the order unchanged.
"""

from __future__ import annotations

from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import BaseModel


class CartLine(BaseModel):
    user_id = models.CharField(max_length=255, db_index=True)
    product = models.ForeignKey(
        "catalog.Product",
        on_delete=models.CASCADE,
        related_name="cart_lines",
    )
    size = models.CharField(max_length=32, blank=True, default="")
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    unit_price = models.DecimalField(max_digits=10, decimal_places=2)
    title = models.CharField(max_length=255)
    summary = models.CharField(max_length=500, blank=True, default="")
    image = models.URLField(max_length=500, blank=True, default="")

    class Meta:
        db_table = "cart_lines"
        ordering = ["created_at", "id"]
        constraints = [
            models.UniqueConstraint(
                fields=["user_id", "product", "size"],
                name="cart_lines_user_product_size_uniq",
            ),
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="cart_lines_quantity_positive",
            ),
        ]

    @property
    def subtotal(self) -> Decimal:
        return self.unit_price * self.quantity

    def __str__(self) -> str:
        return f"{self.user_id}: {self.product_id} [{self.size}] x{self.quantity}"
