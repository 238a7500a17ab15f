from django.apps import AppConfig


class OrdersConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "modules.orders"
    label = "orders"

    def ready(self) -> None:
        from modules.orders import signals  # noqa: F401
        from modules.orders.events import OrderDelivered, OrderUpdated
        from modules.orders.handlers import (
            order_delivered_handler,
            order_updated_handler,
        )
        from shared.infrastructure.bus import event_bus

        event_bus.subscribe(OrderUpdated, order_updated_handler)
        event_bus.subscribe(OrderDelivered, order_delivered_handler)
