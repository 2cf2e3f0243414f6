"""Reservation repository contract."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from modules.inventory.models import ReservationLine, StockReservation


class IReservationRepository(ABC):
    @abstractmethod
    def create(
        self, reservation: StockReservation, lines: List[ReservationLine]
    ) -> StockReservation:
        """Persist a ``HELD`` reservation with its lines and flush its events."""

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[StockReservation]:
        """Retrieve a reservation, or ``None``."""

    @abstractmethod
    def list_lines(self, reservation_id: str) -> List[ReservationLine]:
        """Lines of a reservation in lock order."""

    @abstractmethod
    def mark_released(self, reservation: StockReservation, reason: str = "") -> bool:
        """Flip ``HELD`` to ``RELEASED``.

        Returns ``True`` only for the caller that performed the flip; the
        reservation's pending events are flushed in that case and discarded
        otherwise.
        """
