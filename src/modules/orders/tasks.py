"""Order background tasks."""

from __future__ import annotations

import structlog
from celery import shared_task

from modules.orders.exceptions import InvalidTransition, OrderNotFound
from modules.orders.services import build_order_service
from modules.payments.exceptions import PaymentGatewayError

logger = structlog.get_logger(__name__)


@shared_task(
    name="orders.confirm_order_payment",
    autoretry_for=(PaymentGatewayError,),
    retry_backoff=True,
    retry_kwargs={"max_retries": 5},
)
def confirm_order_payment(order_id: str):
    """Settle a ``PENDING`` online order with the payment gateway."""
    try:
        order = build_order_service().confirm_payment(order_id)
    except OrderNotFound:
        logger.warning("payment.task_order_missing", order_id=order_id)
        return {"order_id": order_id, "status": None}
    except InvalidTransition as exc:
        logger.info(
            "payment.task_skipped", order_id=order_id, status=exc.current
        )
        return {"order_id": order_id, "status": exc.current}
    return {"order_id": order_id, "status": order.status}


@shared_task(name="orders.expire_pending_orders")
def expire_pending_orders():
    """Fail online orders whose payment never got confirmed."""
    expired = build_order_service().expire_pending_orders()
    return {"expired": expired}
