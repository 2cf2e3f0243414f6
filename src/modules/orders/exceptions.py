"""Order domain exceptions.

Raised by the service layer; views translate them into HTTP responses.
Stock and payment failures keep their own exception types
(``modules.inventory.exceptions``, ``modules.payments.exceptions``).
"""

from __future__ import annotations


class OrderError(Exception):
    """Base for order ledger errors."""


class OrderNotFound(OrderError):
    """The order does not exist, is deleted, or belongs to someone else."""


class InvalidTransition(OrderError):
    """The requested status is not reachable from the current one."""

    def __init__(self, current: str, requested: str) -> None:
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot transition from {current} to {requested}.")


class NotCancellable(OrderError):
    """The order has shipped or already reached a terminal status."""


class EmptyCart(OrderError):
    """There is nothing in the cart to order."""


class AdminRequired(OrderError):
    """The operation needs the administrator role."""


class IdempotencyKeyConflict(OrderError):
    """The idempotency key was already used by another caller."""
