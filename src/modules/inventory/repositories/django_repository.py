"""Django ORM implementation of the reservation repository."""

from __future__ import annotations

from typing import List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from modules.core.outbox import record_domain_events
from modules.inventory.constants import ReservationStatus
from modules.inventory.models import ReservationLine, StockReservation
from modules.inventory.repositories.interfaces import IReservationRepository

logger = structlog.get_logger(__name__)

OUTBOX_TOPIC = "inventory"


class ReservationDjangoRepository(IReservationRepository):
    @transaction.atomic
    def create(
        self, reservation: StockReservation, lines: List[ReservationLine]
    ) -> StockReservation:
        reservation.save()
        for line in lines:
            line.reservation = reservation
        ReservationLine.objects.bulk_create(lines)

        events = record_domain_events(reservation, topic=OUTBOX_TOPIC)
        logger.info(
            "reservation.saved",
            reservation_id=str(reservation.id),
            line_count=len(lines),
            event_count=len(events),
        )
        return reservation

    def get_by_id(self, id: str) -> Optional[StockReservation]:
        try:
            return StockReservation.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list_lines(self, reservation_id: str) -> List[ReservationLine]:
        return list(
            ReservationLine.objects.filter(reservation_id=reservation_id).order_by(
                "product_id", "size"
            )
        )

    @transaction.atomic
    def mark_released(self, reservation: StockReservation, reason: str = "") -> bool:
        now = timezone.now()
        # Only one caller can match the HELD row.
        updated = StockReservation.objects.filter(
            id=reservation.id, status=ReservationStatus.HELD
        ).update(
            status=ReservationStatus.RELEASED,
            released_at=now,
            release_reason=reason[:255],
            updated_at=now,
        )
        if updated != 1:
            reservation.clear_domain_events()
            return False

        reservation.status = ReservationStatus.RELEASED
        reservation.released_at = now
        reservation.release_reason = reason[:255]
        record_domain_events(reservation, topic=OUTBOX_TOPIC)
        return True
