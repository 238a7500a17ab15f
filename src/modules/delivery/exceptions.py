"""Delivery client exceptions.

None of these is fatal: every failure leaves the store snapshot intact
and can be retried by the driver.
"""

from __future__ import annotations

from typing import Any, Optional


class DeliveryError(Exception):
    """Base class for delivery workflow errors."""


class GatewayError(DeliveryError):
    """The backend could not be reached or rejected the request."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        payload: Any = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload


class OrderUpdateFailed(DeliveryError):
    """A partial order update was not applied; the local snapshot is unchanged."""

    def __init__(self, order_id: Any, reason: str) -> None:
        super().__init__(f"Update of order {order_id} failed: {reason}")
        self.order_id = order_id
        self.reason = reason


class ActionNotAllowed(DeliveryError):
    """The driver requested an action the order's bucket does not offer."""


class PaymentValidationError(DeliveryError):
    """The entered amount was rejected; ``code`` is a ``ValidationCode``."""

    def __init__(self, code: str, message: str = "") -> None:
        super().__init__(message or code)
        self.code = code


class InvalidCollectionState(DeliveryError):
    """A collection session method was called out of order."""
