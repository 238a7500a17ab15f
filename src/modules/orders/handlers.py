"""Event handlers for Orders domain events."""

from __future__ import annotations

import structlog

from modules.orders.events import OrderDelivered, OrderUpdated
from shared.domain.bus import IEventHandler

logger = structlog.get_logger(__name__)


class OrderUpdatedHandler(IEventHandler[OrderUpdated]):
    def handle(self, event: OrderUpdated) -> None:
        logger.info(
            "order.event.updated",
            order_id=str(event.aggregate_id),
            changed_fields=list(event.changed_fields),
            changed_by=event.changed_by,
        )


class OrderDeliveredHandler(IEventHandler[OrderDelivered]):
    def handle(self, event: OrderDelivered) -> None:
        logger.info(
            "order.event.delivered",
            order_id=str(event.aggregate_id),
            payment_id=event.payment_id,
            driver=event.assigned_driver,
        )


order_updated_handler = OrderUpdatedHandler()
order_delivered_handler = OrderDeliveredHandler()
