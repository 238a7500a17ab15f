"""Domain events for the Payments bounded context."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class PaymentCollected(DomainEvent):
    """Raised when a driver records collected cash."""

    order_id: int | None = None
    amount: Decimal = Decimal("0.00")
    collected_by: str = ""


@dataclass(frozen=True)
class PaymentVoided(DomainEvent):
    """Raised when a payment is voided to compensate a failed completion."""

    order_id: int | None = None
    reason: str = ""
