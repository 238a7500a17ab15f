"""Payment domain exceptions."""

from __future__ import annotations


class PaymentNotFound(Exception):
    """The requested payment does not exist."""


class PaymentOrderNotFound(Exception):
    """The order referenced by a new payment does not exist."""


class PaymentAlreadySettled(Exception):
    """The payment backs a paid order and cannot be voided."""
