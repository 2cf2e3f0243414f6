"""Django ORM implementation of the Order repository.

Writes run inside ``transaction.atomic``; the Order aggregate (order,
items, initial history and outbox rows) is persisted as one unit.
Status changes lock the order row with ``select_for_update``.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

import structlog
from django.core.exceptions import ValidationError
from django.db import models, transaction

from modules.core.outbox import record_domain_events
from modules.orders.constants import OrderStatus
from modules.orders.models import Order, OrderItem, OrderStatusHistory
from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)

OUTBOX_TOPIC = "orders"


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    def _queryset(self) -> models.QuerySet:
        return Order.objects.alive().prefetch_related("items", "status_history")

    @transaction.atomic
    def create(self, data: Dict[str, Any]) -> Order:
        order = Order(
            user_id=data["user_id"],
            status=data["status"],
            payment_mode=data["payment_mode"],
            payment_id=data.get("payment_id", ""),
            address=data["address"],
            notes=data.get("notes", ""),
            reservation_id=data.get("reservation_id"),
            idempotency_key=data.get("idempotency_key"),
        )
        order.save()

        total = Decimal("0.00")
        items = data.get("items", [])
        for item_data in items:
            item = OrderItem(
                order=order,
                product_id=item_data["product_id"],
                size=item_data.get("size", ""),
                title=item_data["title"],
                summary=item_data.get("summary", ""),
                image=item_data.get("image", ""),
                quantity=item_data["quantity"],
                unit_price=item_data["unit_price"],
            )
            item.save()
            total += item.subtotal

        order.total_amount = total
        order.save(update_fields=["total_amount"])

        logger.info("order.persisted", order_id=str(order.id), item_count=len(items))
        return order

    def get_by_id(self, id: str) -> Optional[Order]:
        try:
            return self._queryset().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> models.QuerySet:
        queryset = Order.objects.alive().prefetch_related("items")
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    @transaction.atomic
    def save(self, entity: Order) -> Order:
        """Persist an order and flush its domain events to the outbox."""
        entity.save()
        events = record_domain_events(entity, topic=OUTBOX_TOPIC)
        logger.info("order.saved", order_id=str(entity.id), event_count=len(events))
        return entity

    def delete(self, id: str) -> bool:
        raise NotImplementedError("Orders are never deleted; cancel them instead.")

    @transaction.atomic
    def add_history(
        self,
        order_id: UUID,
        status: str,
        notes: str = "",
        old_status: Optional[str] = None,
        user_id: str = "",
    ) -> OrderStatusHistory:
        history = OrderStatusHistory.objects.create(
            order_id=order_id,
            old_status=old_status,
            new_status=status,
            user_id=user_id,
            notes=notes,
        )
        logger.info(
            "order.history_added",
            order_id=str(order_id),
            old_status=old_status,
            new_status=status,
        )
        return history

    def get_for_update(self, id: str) -> Optional[Order]:
        try:
            return (
                Order.objects.alive()
                .select_for_update()
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def get_by_idempotency_key(
        self, key: str, for_update: bool = False
    ) -> Optional[Order]:
        queryset = self._queryset().filter(idempotency_key=key)
        if for_update:
            queryset = queryset.select_for_update()
        return queryset.first()

    def list_pending_before(self, cutoff: datetime) -> List[UUID]:
        return list(
            Order.objects.alive()
            .filter(status=OrderStatus.PENDING, created_at__lt=cutoff)
            .order_by("created_at")
            .values_list("id", flat=True)
        )
