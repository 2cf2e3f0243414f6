"""Inventory repositories package."""

from modules.inventory.repositories.django_repository import (
    ReservationDjangoRepository,
)
from modules.inventory.repositories.interfaces import IReservationRepository

__all__ = ["IReservationRepository", "ReservationDjangoRepository"]
