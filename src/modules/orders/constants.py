"""Order domain constants: statuses, payment modes and the state machine."""

from django.db import models


class OrderStatus(models.TextChoices):
    PENDING = "PENDING", "Pending"
    RECEIVED = "RECEIVED", "Received"
    PROCESSING = "PROCESSING", "Processing"
    SHIPPED = "SHIPPED", "Shipped"
    DELIVERED = "DELIVERED", "Delivered"
    CANCELLED = "CANCELLED", "Cancelled"
    FAILED = "FAILED", "Failed"


class PaymentMode(models.TextChoices):
    CASH_ON_DELIVERY = "COD", "Cash on delivery"
    ONLINE = "ONLINE", "Online payment"


VALID_TRANSITIONS: dict[str, set[str]] = {
    OrderStatus.PENDING: {
        OrderStatus.RECEIVED,
        OrderStatus.FAILED,
        OrderStatus.CANCELLED,
    },
    OrderStatus.RECEIVED: {
        OrderStatus.PROCESSING,
        OrderStatus.SHIPPED,
        OrderStatus.DELIVERED,
        OrderStatus.CANCELLED,
    },
    OrderStatus.PROCESSING: {
        OrderStatus.SHIPPED,
        OrderStatus.DELIVERED,
        OrderStatus.CANCELLED,
    },
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
    OrderStatus.FAILED: set(),
}

# Fulfilment moves an administrator may apply directly; payment outcomes
# (PENDING -> RECEIVED / FAILED) come only from the payment adapter.
ADMIN_TRANSITIONS: dict[str, set[str]] = {
    OrderStatus.RECEIVED: {
        OrderStatus.PROCESSING,
        OrderStatus.SHIPPED,
        OrderStatus.DELIVERED,
    },
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.DELIVERED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
}

CANCELLABLE_STATES: set[str] = {
    OrderStatus.PENDING,
    OrderStatus.RECEIVED,
    OrderStatus.PROCESSING,
}

TERMINAL_STATES: set[str] = {
    OrderStatus.DELIVERED,
    OrderStatus.CANCELLED,
    OrderStatus.FAILED,
}

ORDER_NUMBER_MAX_RETRIES = 5
