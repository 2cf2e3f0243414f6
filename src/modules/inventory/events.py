"""Domain events for the Inventory bounded context."""

from __future__ import annotations

from dataclasses import dataclass

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class StockReserved(DomainEvent):
    """Stock was decremented to back a reservation."""

    user_id: str = ""
    lines: tuple = ()


@dataclass(frozen=True)
class StockReleased(DomainEvent):
    """A reservation's decrements were reversed."""

    reason: str = ""
