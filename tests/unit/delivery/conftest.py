"""Fixtures for the delivery client core: an in-memory gateway and a clock."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import pytest

from modules.delivery.exceptions import GatewayError
from modules.delivery.gateways.interfaces import IDeliveryGateway
from modules.delivery.store import OrderStore

T0 = datetime(2024, 5, 14, 12, 0, tzinfo=timezone.utc)


class FakeGateway(IDeliveryGateway):
    """Backend double that keeps orders and payments as plain payloads.

    Set ``fail_<operation>`` to a ``GatewayError`` to make that operation
    raise; ``calls`` records every operation in order.
    """

    def __init__(self, orders: Optional[List[Dict[str, Any]]] = None) -> None:
        self.orders: Dict[str, Dict[str, Any]] = {
            str(o["id"]): dict(o) for o in orders or []
        }
        self.payments: List[Dict[str, Any]] = []
        self.customers: List[Dict[str, Any]] = []
        self.products: List[Dict[str, Any]] = []
        self.calls: List[tuple] = []
        self.fail_list_orders: Optional[GatewayError] = None
        self.fail_update_order: Optional[GatewayError] = None
        self.fail_create_payment: Optional[GatewayError] = None
        self.fail_void_payment: Optional[GatewayError] = None
        self.return_update_body = True
        self.before_create_payment = None

    def list_orders(self):
        self.calls.append(("list_orders",))
        if self.fail_list_orders:
            raise self.fail_list_orders
        return [dict(o) for o in self.orders.values()]

    def update_order(self, order_id, payload):
        self.calls.append(("update_order", str(order_id), dict(payload)))
        if self.fail_update_order:
            raise self.fail_update_order
        order = self.orders[str(order_id)]
        order.update(payload)
        return dict(order) if self.return_update_body else None

    def create_payment(self, payload):
        self.calls.append(("create_payment", dict(payload)))
        if self.before_create_payment:
            self.before_create_payment()
        if self.fail_create_payment:
            raise self.fail_create_payment
        payment = {"id": len(self.payments) + 1, **payload}
        self.payments.append(payment)
        return dict(payment)

    def void_payment(self, payment_id, reason=""):
        self.calls.append(("void_payment", payment_id, reason))
        if self.fail_void_payment:
            raise self.fail_void_payment
        for payment in self.payments:
            if payment["id"] == payment_id:
                payment["status"] = "voided"
                return dict(payment)
        raise GatewayError("not found", status_code=404)

    def list_payments(self):
        return [dict(p) for p in self.payments]

    def list_customers(self):
        return list(self.customers)

    def list_products(self):
        return list(self.products)

    def operations(self) -> List[str]:
        return [call[0] for call in self.calls]


def order_payload(order_id=42, **fields) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "id": order_id,
        "deliveryOption": "delivery",
        "total": "150.00",
        "assignedDriver": None,
        "customer": 7,
        "createdAt": "2024-05-14T09:00:00Z",
    }
    payload.update(fields)
    return payload


@pytest.fixture()
def clock():
    return lambda: T0


@pytest.fixture()
def gateway():
    return FakeGateway([order_payload()])


@pytest.fixture()
def store(gateway, clock):
    store = OrderStore(gateway, clock=clock)
    store.fetch_orders()
    return store


@pytest.fixture()
def make_payload():
    """Raw order payload as the API would send it (camelCase variants)."""
    return order_payload


@pytest.fixture()
def make_gateway():
    return FakeGateway
