"""Order domain exceptions.

Raised by the Service Layer when business rules are violated.
The API layer (Views) catches these and translates them into
appropriate HTTP responses.
"""

from __future__ import annotations


class OrderNotFound(Exception):
    """The requested order does not exist or has been soft-deleted."""


class InvalidOrderUpdate(Exception):
    """The partial update carries a value the order cannot accept."""


class UnverifiedPayment(Exception):
    """``is_paid`` was set without a completed payment matching the total."""
