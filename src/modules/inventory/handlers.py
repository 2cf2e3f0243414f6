"""Event handlers for Inventory domain events."""

from __future__ import annotations

import structlog

from modules.inventory.events import StockReleased, StockReserved
from shared.domain.bus import IEventHandler

logger = structlog.get_logger(__name__)


class StockReservedHandler(IEventHandler[StockReserved]):
    def handle(self, event: StockReserved) -> None:
        logger.info(
            "stock.event.reserved",
            reservation_id=str(event.aggregate_id),
            line_count=len(event.lines),
        )


class StockReleasedHandler(IEventHandler[StockReleased]):
    def handle(self, event: StockReleased) -> None:
        logger.info(
            "stock.event.released",
            reservation_id=str(event.aggregate_id),
            reason=event.reason,
        )


stock_reserved_handler = StockReservedHandler()
stock_released_handler = StockReleasedHandler()
