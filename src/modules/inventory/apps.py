from django.apps import AppConfig


class InventoryConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "modules.inventory"
    label = "inventory"

    def ready(self) -> None:
        from modules.inventory.events import StockReleased, StockReserved
        from modules.inventory.handlers import (
            stock_released_handler,
            stock_reserved_handler,
        )
        from shared.infrastructure.bus import event_bus

        event_bus.subscribe(StockReserved, stock_reserved_handler)
        event_bus.subscribe(StockReleased, stock_released_handler)
