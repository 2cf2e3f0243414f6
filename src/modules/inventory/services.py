"""Stock reservation engine.

Turns a set of (product, size, quantity) lines into stock decrements that
either all apply or none do:

- Lines are merged per (product, size) and processed in a fixed order so
  concurrent reservations touch variant rows in the same sequence.
- Every decrement is a single conditional update in the stock store; no
  read-then-write window exists between the check and the subtraction.
- When a line fails, the lines already applied are re-incremented before
  ``InsufficientStock`` propagates, and the surrounding transaction is
  rolled back as well.
- ``release`` reverses a reservation at most once, however many times and
  from however many places it is called.
"""

from __future__ import annotations

from collections import OrderedDict
from typing import TYPE_CHECKING, Iterable, List, Tuple
from uuid import UUID

import structlog
from django.db import transaction

from modules.inventory.events import StockReleased, StockReserved
from modules.inventory.exceptions import InsufficientStock, ReservationNotFound
from modules.inventory.models import ReservationLine, StockReservation

if TYPE_CHECKING:
    from modules.catalog.repositories.interfaces import IStockStore
    from modules.inventory.dtos import StockRequestDTO
    from modules.inventory.repositories.interfaces import IReservationRepository

logger = structlog.get_logger(__name__)

Line = Tuple[UUID, str, int]


def merge_lines(items: Iterable[StockRequestDTO]) -> List[Line]:
    """Sum quantities per (product, size) and sort into lock order."""
    merged: "OrderedDict[Tuple[UUID, str], int]" = OrderedDict()
    for item in items:
        key = (item.product_id, item.size)
        merged[key] = merged.get(key, 0) + item.quantity
    return sorted(
        ((product_id, size, qty) for (product_id, size), qty in merged.items()),
        key=lambda line: (str(line[0]), line[1]),
    )


class StockReservationService:
    """Application service for stock reservations."""

    def __init__(
        self,
        stock_store: IStockStore,
        reservation_repository: IReservationRepository,
    ) -> None:
        self._stock = stock_store
        self._reservations = reservation_repository

    def check_availability(self, items: Iterable[StockRequestDTO]) -> bool:
        """Advisory read: ``True`` when every merged line fits current stock.

        Nothing is held; a later reservation may still fail.
        """
        for product_id, size, quantity in merge_lines(items):
            if self._stock.get_stock(product_id, size) < quantity:
                return False
        return True

    @transaction.atomic
    def reserve_and_decrement(
        self, items: Iterable[StockRequestDTO], user_id: str
    ) -> StockReservation:
        """Decrement stock for every line or for none of them.

        Raises:
            InsufficientStock: the first line (in lock order) that could
                not be satisfied, with the quantity seen on hand.
            ValueError: no lines were supplied.
        """
        lines = merge_lines(items)
        if not lines:
            raise ValueError("At least one line is required.")

        log = logger.bind(user_id=user_id)
        applied: List[Line] = []

        for product_id, size, quantity in lines:
            if self._stock.decrement_stock(product_id, size, quantity):
                applied.append((product_id, size, quantity))
                continue

            available = self._stock.get_stock(product_id, size)
            self._compensate(applied)
            log.warning(
                "stock.insufficient",
                product_id=str(product_id),
                size=size,
                requested=quantity,
                available=available,
                rolled_back=len(applied),
            )
            raise InsufficientStock(product_id, size, available, quantity)

        reservation = StockReservation(user_id=user_id)
        reservation.add_domain_event(
            StockReserved(
                aggregate_id=reservation.id,
                user_id=user_id,
                lines=tuple(
                    {"product_id": str(p), "size": s, "quantity": q}
                    for p, s, q in lines
                ),
            )
        )
        reservation = self._reservations.create(
            reservation,
            [
                ReservationLine(product_id=p, size=s, quantity=q)
                for p, s, q in lines
            ],
        )
        log.info(
            "stock.reserved",
            reservation_id=str(reservation.id),
            line_count=len(lines),
        )
        return reservation

    @transaction.atomic
    def release(self, reservation_id: str, reason: str = "") -> bool:
        """Give a reservation's stock back.

        Returns ``True`` when this call restored the stock and ``False``
        when the reservation had already been released.

        Raises:
            ReservationNotFound: the id is unknown.
        """
        reservation = self._reservations.get_by_id(str(reservation_id))
        if reservation is None:
            raise ReservationNotFound(f"Reservation {reservation_id} not found.")

        log = logger.bind(reservation_id=str(reservation_id), reason=reason)

        if not reservation.is_held:
            log.info("stock.release_skipped")
            return False

        reservation.add_domain_event(
            StockReleased(aggregate_id=reservation.id, reason=reason)
        )
        if not self._reservations.mark_released(reservation, reason):
            log.info("stock.release_skipped")
            return False

        lines = self._reservations.list_lines(str(reservation.id))
        for line in lines:
            if not self._stock.increment_stock(
                line.product_id, line.size, line.quantity
            ):
                log.warning(
                    "stock.release_variant_missing",
                    product_id=str(line.product_id),
                    size=line.size,
                    quantity=line.quantity,
                )

        log.info("stock.released", line_count=len(lines))
        return True

    def _compensate(self, applied: List[Line]) -> None:
        for product_id, size, quantity in reversed(applied):
            self._stock.increment_stock(product_id, size, quantity)
