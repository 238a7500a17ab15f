"""Domain events for the Orders bounded context."""

from __future__ import annotations

from dataclasses import dataclass, field

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class OrderUpdated(DomainEvent):
    """Raised when a partial update is applied to an order."""

    changed_fields: tuple[str, ...] = field(default=())
    changed_by: str = ""


@dataclass(frozen=True)
class OrderDelivered(DomainEvent):
    """Raised when an order is marked delivered and paid."""

    payment_id: int | None = None
    assigned_driver: str | None = None
