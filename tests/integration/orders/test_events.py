"""Domain events raised by order updates reach bus subscribers after commit."""

from __future__ import annotations

import pytest

from modules.orders.events import OrderDelivered, OrderUpdated
from modules.payments.models import Payment
from shared.infrastructure.bus import event_bus

pytestmark = pytest.mark.integration


class CapturingHandler:
    def __init__(self) -> None:
        self.events = []

    def handle(self, event) -> None:
        self.events.append(event)


@pytest.fixture()
def captured():
    handler = CapturingHandler()
    event_bus.subscribe(OrderUpdated, handler)
    event_bus.subscribe(OrderDelivered, handler)
    yield handler.events
    event_bus.unsubscribe(OrderUpdated, handler)
    event_bus.unsubscribe(OrderDelivered, handler)


def test_update_publishes_on_commit(
    auth_client, make_order, captured, django_capture_on_commit_callbacks
):
    order = make_order()

    with django_capture_on_commit_callbacks(execute=False) as callbacks:
        auth_client.patch(
            f"/api/v1/orders/{order.pk}/", {"assigned_driver": "Ali"}, format="json"
        )
        assert captured == []

    for callback in callbacks:
        callback()

    [event] = captured
    assert isinstance(event, OrderUpdated)
    assert event.aggregate_id == order.pk
    assert event.changed_fields == ("assigned_driver",)
    assert event.changed_by == "Ali"


def test_completion_publishes_delivered(
    auth_client, make_order, captured, django_capture_on_commit_callbacks
):
    order = make_order()
    payment = Payment.objects.create(order=order, amount="150.00", collected_by="Ali")

    with django_capture_on_commit_callbacks(execute=True):
        auth_client.patch(
            f"/api/v1/orders/{order.pk}/",
            {"is_delivered": True, "is_paid": True, "payment_id": payment.pk},
            format="json",
        )

    delivered = [e for e in captured if isinstance(e, OrderDelivered)]
    assert len(delivered) == 1
    assert delivered[0].payment_id == payment.pk


def test_noop_update_publishes_nothing(
    auth_client, make_order, captured, django_capture_on_commit_callbacks
):
    order = make_order()

    with django_capture_on_commit_callbacks(execute=True):
        auth_client.patch(f"/api/v1/orders/{order.pk}/", {}, format="json")

    assert captured == []
