"""Domain events for the Orders bounded context."""

from __future__ import annotations

from dataclasses import dataclass

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class OrderCreated(DomainEvent):
    """Raised when an order is placed."""

    user_id: str = ""
    status: str = ""
    payment_mode: str = ""
    total_amount: str = ""


@dataclass(frozen=True)
class OrderStatusChanged(DomainEvent):
    old_status: str = ""
    new_status: str = ""


@dataclass(frozen=True)
class OrderCancelled(DomainEvent):
    old_status: str = ""
    reason: str = ""


@dataclass(frozen=True)
class OrderPaymentConfirmed(DomainEvent):
    payment_id: str = ""


@dataclass(frozen=True)
class OrderPaymentFailed(DomainEvent):
    payment_id: str = ""
    reason: str = ""
