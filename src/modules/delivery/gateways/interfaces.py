"""Delivery gateway interface.

The store, the workflow and the collection flow only talk to the backend
through this contract, so tests can inject a fake and the same client
code runs against a remote API or in-process services.

Every method returns plain JSON-like payloads exactly as the REST API
would; normalization happens in the store.  Any failure is raised as
``GatewayError``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from modules.delivery.dtos import RecordId

Payload = Dict[str, Any]


class IDeliveryGateway(ABC):
    @abstractmethod
    def list_orders(self) -> List[Payload]:
        """GET /orders (every page)."""

    @abstractmethod
    def update_order(self, order_id: RecordId, payload: Payload) -> Optional[Payload]:
        """PATCH /orders/{id}; returns the updated order when the backend sends one."""

    @abstractmethod
    def create_payment(self, payload: Payload) -> Payload:
        """POST /payments; returns the created payment with its server id."""

    @abstractmethod
    def void_payment(self, payment_id: RecordId, reason: str = "") -> Payload:
        """POST /payments/{id}/void."""

    @abstractmethod
    def list_payments(self) -> List[Payload]:
        """GET /payments (every page)."""

    @abstractmethod
    def list_customers(self) -> List[Payload]:
        """GET /customers (every page)."""

    @abstractmethod
    def list_products(self) -> List[Payload]:
        """GET /products (every page)."""
