"""Stock reservation exceptions."""

from __future__ import annotations

from uuid import UUID


class InsufficientStock(Exception):
    """A line asks for more than is on hand.

    Caller-correctable: reduce the quantity or drop the line.  A missing
    or unsellable product is reported with ``available=0``.
    """

    def __init__(
        self, product_id: UUID, size: str, available: int, requested: int
    ) -> None:
        self.product_id = product_id
        self.size = size
        self.available = available
        self.requested = requested
        label = f"{product_id} [{size}]" if size else str(product_id)
        super().__init__(
            f"Product {label}: requested {requested}, available {available}."
        )

    def as_dict(self) -> dict:
        return {
            "product_id": str(self.product_id),
            "size": self.size,
            "available": self.available,
            "requested": self.requested,
        }


class ReservationNotFound(Exception):
    """The reservation id is unknown."""
