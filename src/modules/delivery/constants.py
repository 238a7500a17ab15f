"""Delivery workflow constants.

Rates and tolerances are business constants, not deployment settings.
"""

from __future__ import annotations

from decimal import Decimal
from enum import Enum

COMMISSION_RATE = Decimal("0.10")

# Absolute difference allowed between the collected cash and the order total.
AMOUNT_TOLERANCE = Decimal("0.01")

DEFAULT_POLL_INTERVAL = 30.0

# A completed delivery slower than this counts as late in reports.
LATE_DELIVERY_MINUTES = 45

# Rows shown on the driver's home screen.
HOME_RECENT_ORDERS = 4

DELIVERY = "delivery"


class Bucket(str, Enum):
    UNCLAIMED = "unclaimed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    READY_UNCLAIMED_BY_OTHER = "ready_unclaimed_by_other"


class Action(str, Enum):
    START_DELIVERY = "start_delivery"
    COMPLETE_DELIVERY = "complete_delivery"


class MyOrdersView(str, Enum):
    ALL = "all"
    PENDING = "pending"
    DELIVERING = "delivering"
    DELIVERED = "delivered"


class ReportRange(str, Enum):
    TODAY = "today"
    WEEK = "week"
    MONTH = "month"
    ALL = "all"


class ValidationCode:
    """Message codes surfaced to the driver; display text is resolved by the UI."""

    INVALID_AMOUNT = "invalidAmount"
    AMOUNT_MISMATCH = "amountMismatch"
    INVALID_ORDER_TOTAL = "invalidOrderTotal"
    PAYMENT_ERROR = "paymentError"


STATUS_LABELS: dict[str, str] = {
    "pending": "Pending",
    "delivering": "Delivering",
    "delivered": "Delivered",
    "completed": "Delivered",
    "cancelled": "Cancelled",
}
DEFAULT_STATUS_LABEL = "Ready for delivery"

# Fields the store may send in a partial order update.
UPDATABLE_FIELDS: frozenset[str] = frozenset(
    {
        "status",
        "delivery_status",
        "assigned_driver",
        "delivery_start_time",
        "delivery_end_time",
        "is_delivered",
        "is_paid",
        "paid_at",
        "payment_id",
        "delivery_address",
        "customer_phone",
        "notes",
    }
)
