"""Unit tests for Orders event handlers and in-memory bus."""

from __future__ import annotations

import logging

import pytest

from modules.orders.events import OrderDelivered, OrderUpdated
from modules.orders.handlers import OrderDeliveredHandler, OrderUpdatedHandler
from shared.infrastructure.bus import InMemoryEventBus

pytestmark = pytest.mark.unit


def test_order_updated_handler_logs(caplog):
    handler = OrderUpdatedHandler()
    event = OrderUpdated(aggregate_id=42, changed_fields=("assigned_driver",), changed_by="Ali")

    with caplog.at_level(logging.INFO, logger="modules.orders.handlers"):
        handler.handle(event)

    assert any("order.event.updated" in record.getMessage() for record in caplog.records)


def test_order_delivered_handler_logs(caplog):
    handler = OrderDeliveredHandler()
    event = OrderDelivered(aggregate_id=42, payment_id=7, assigned_driver="Ali")

    with caplog.at_level(logging.INFO, logger="modules.orders.handlers"):
        handler.handle(event)

    assert any("order.event.delivered" in record.getMessage() for record in caplog.records)


def test_in_memory_event_bus_routes_events():
    bus = InMemoryEventBus()
    handled = []

    class CapturingHandler:
        def handle(self, event) -> None:
            handled.append(event)

    handler = CapturingHandler()
    event = OrderUpdated(aggregate_id=42)

    bus.subscribe(OrderUpdated, handler)
    bus.subscribe(OrderUpdated, handler)
    bus.publish(event)
    bus.publish(OrderDelivered(aggregate_id=42))

    assert handled == [event]


def test_unsubscribed_handler_is_not_called():
    bus = InMemoryEventBus()
    handled = []

    class CapturingHandler:
        def handle(self, event) -> None:
            handled.append(event)

    handler = CapturingHandler()
    bus.subscribe(OrderUpdated, handler)
    bus.unsubscribe(OrderUpdated, handler)
    bus.publish(OrderUpdated(aggregate_id=42))

    assert handled == []
