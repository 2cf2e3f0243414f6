"""Stock reservations.

A ``StockReservation`` records the decrements made to back one order so
they can be reversed later.  ``HELD`` flips to ``RELEASED`` exactly once;
the flip is a guarded update, which is what makes ``release`` idempotent.
"""

from __future__ import annotations

from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import BaseModel
from modules.inventory.constants import ReservationStatus
from shared.domain.events import DomainEventMixin


class StockReservation(DomainEventMixin, BaseModel):
    user_id = models.CharField(max_length=255, db_index=True)
    status = models.CharField(
        max_length=20,
        choices=ReservationStatus.choices,
        default=ReservationStatus.HELD,
    )
    released_at = models.DateTimeField(null=True, blank=True, default=None)
    release_reason = models.CharField(max_length=255, blank=True, default="")

    class Meta:
        db_table = "stock_reservations"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="reservations_status_idx"),
        ]

    @property
    def is_held(self) -> bool:
        return self.status == ReservationStatus.HELD

    def __str__(self) -> str:
        return f"Reservation {self.id} ({self.status})"


class ReservationLine(BaseModel):
    reservation = models.ForeignKey(
        "inventory.StockReservation",
        on_delete=models.CASCADE,
        related_name="lines",
    )
    product = models.ForeignKey(
        "catalog.Product",
        on_delete=models.PROTECT,
        related_name="reservation_lines",
    )
    size = models.CharField(max_length=32, blank=True, default="")
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])

    class Meta:
        db_table = "stock_reservation_lines"
        ordering = ["product_id", "size"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="reservation_lines_quantity_positive",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.product_id} [{self.size}] x{self.quantity}"
