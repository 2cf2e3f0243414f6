"""Event handlers for Orders domain events."""

from __future__ import annotations

import structlog

from modules.orders.events import (
    OrderCancelled,
    OrderCreated,
    OrderPaymentConfirmed,
    OrderPaymentFailed,
    OrderStatusChanged,
)
from shared.domain.bus import IEventHandler

logger = structlog.get_logger(__name__)


class OrderCreatedHandler(IEventHandler[OrderCreated]):
    def handle(self, event: OrderCreated) -> None:
        logger.info(
            "order.event.created",
            order_id=str(event.aggregate_id),
            status=event.status,
            payment_mode=event.payment_mode,
        )


class OrderCancelledHandler(IEventHandler[OrderCancelled]):
    def handle(self, event: OrderCancelled) -> None:
        logger.info(
            "order.event.cancelled",
            order_id=str(event.aggregate_id),
            old_status=event.old_status,
        )


class OrderStatusChangedHandler(IEventHandler[OrderStatusChanged]):
    def handle(self, event: OrderStatusChanged) -> None:
        logger.info(
            "order.event.status_changed",
            order_id=str(event.aggregate_id),
            old_status=event.old_status,
            new_status=event.new_status,
        )


class OrderPaymentConfirmedHandler(IEventHandler[OrderPaymentConfirmed]):
    def handle(self, event: OrderPaymentConfirmed) -> None:
        logger.info("order.event.payment_confirmed", order_id=str(event.aggregate_id))


class OrderPaymentFailedHandler(IEventHandler[OrderPaymentFailed]):
    def handle(self, event: OrderPaymentFailed) -> None:
        logger.info(
            "order.event.payment_failed",
            order_id=str(event.aggregate_id),
            reason=event.reason,
        )


order_created_handler = OrderCreatedHandler()
order_cancelled_handler = OrderCancelledHandler()
order_status_changed_handler = OrderStatusChangedHandler()
order_payment_confirmed_handler = OrderPaymentConfirmedHandler()
order_payment_failed_handler = OrderPaymentFailedHandler()
