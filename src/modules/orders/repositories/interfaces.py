"""Order repository interface.

Extends ``IRepository[Order]`` with what the Order aggregate needs:
atomic creation with items, status history, row locking and
idempotency-key look-up.
"""

from __future__ import annotations

from abc import abstractmethod
from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, List, Optional
from uuid import UUID

from django.db import models

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.orders.models import Order, OrderStatusHistory


class IOrderRepository(IRepository["Order"]):
    @abstractmethod
    def create(self, data: Dict[str, Any]) -> Order:
        """Create an order with its items atomically.

        ``data`` carries ``user_id``, ``status``, ``payment_mode``,
        ``payment_id``, ``address``, ``notes``, ``reservation_id``,
        ``idempotency_key`` and ``items`` (dicts with ``product_id``,
        ``size``, ``title``, ``summary``, ``image``, ``quantity``,
        ``unit_price``).  ``total_amount`` is computed from the items.
        """

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[Order]:
        """Retrieve a live order with prefetched items and history."""

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> "models.QuerySet[Order]":
        """Live orders with optional ORM look-ups."""

    @abstractmethod
    def get_for_update(self, id: str) -> Optional[Order]:
        """Retrieve an order with a row-level lock."""

    @abstractmethod
    def add_history(
        self,
        order_id: UUID,
        status: str,
        notes: str = "",
        old_status: Optional[str] = None,
        user_id: str = "",
    ) -> OrderStatusHistory:
        """Record a status change in the order's audit trail."""

    @abstractmethod
    def get_by_idempotency_key(
        self, key: str, for_update: bool = False
    ) -> Optional[Order]:
        """Retrieve an order by its idempotency key.

        ``for_update`` takes a row lock, which also makes a row committed by
        a concurrent transaction visible.
        """

    @abstractmethod
    def list_pending_before(self, cutoff: datetime) -> List[UUID]:
        """Ids of ``PENDING`` orders created before *cutoff*."""
