"""Read-only summaries computed from the order snapshot and payments."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple, Union

import structlog
from pydantic import ValidationError as PydanticValidationError

from modules.delivery.constants import LATE_DELIVERY_MINUTES, ReportRange
from modules.delivery.dtos import DeliveryOrder, PaymentRecord, order_key
from modules.delivery.resolvers import ReferenceResolver
from modules.delivery.workflow import (
    commission,
    elapsed_delivery_minutes,
    is_completed,
    is_eligible,
    is_mine,
)

logger = structlog.get_logger(__name__)

_ZERO = Decimal("0.00")
_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


# ----------------------------------------------------------------------
# Payment ledger
# ----------------------------------------------------------------------


@dataclass(frozen=True)
class LedgerRow:
    payment: PaymentRecord
    order_id: str
    customer_name: str
    amount: Decimal
    commission: Decimal
    collected_at: Optional[datetime]
    is_paid: bool


@dataclass(frozen=True)
class PaymentLedger:
    rows: Tuple[LedgerRow, ...] = ()
    total_collected: Decimal = _ZERO
    total_commission: Decimal = _ZERO

    def __len__(self) -> int:
        return len(self.rows)


def parse_payments(payloads: Iterable[Dict]) -> List[PaymentRecord]:
    payments = []
    for payload in payloads:
        try:
            payments.append(PaymentRecord.model_validate(payload))
        except PydanticValidationError as exc:
            logger.warning("reports.payment_skipped", errors=exc.error_count())
    return payments


def _collected_key(payment: PaymentRecord) -> datetime:
    return payment.collected_at or _EPOCH


def payment_ledger(
    payments: Iterable[PaymentRecord],
    orders: Iterable[DeliveryOrder] = (),
    search: str = "",
    resolver: Optional[ReferenceResolver] = None,
) -> PaymentLedger:
    """Completed payments, one per order (the latest), newest first."""
    by_order = {order.key: order for order in orders}
    latest: Dict[str, PaymentRecord] = {}
    for payment in payments:
        if not payment.is_completed:
            continue
        key = order_key(payment.order_id)
        current = latest.get(key)
        if current is None or _collected_key(payment) > _collected_key(current):
            latest[key] = payment

    term = search.strip().lower()
    rows = []
    for key, payment in latest.items():
        order = by_order.get(key)
        name = payment.customer_name
        if not name and order is not None:
            name = (resolver or ReferenceResolver()).customer_name(order)
        if term and term not in key.lower() and term not in name.lower():
            continue
        rows.append(
            LedgerRow(
                payment=payment,
                order_id=key,
                customer_name=name,
                amount=payment.amount,
                commission=commission(payment.amount),
                collected_at=payment.collected_at,
                is_paid=order.is_paid if order is not None else True,
            )
        )
    rows.sort(key=lambda row: _collected_key(row.payment), reverse=True)
    return PaymentLedger(
        rows=tuple(rows),
        total_collected=sum((row.amount for row in rows), _ZERO),
        total_commission=sum((row.commission for row in rows), _ZERO),
    )


# ----------------------------------------------------------------------
# Driver home
# ----------------------------------------------------------------------


@dataclass(frozen=True)
class DriverStats:
    completed_today: int
    pending_deliveries: int
    todays_earnings: Decimal


def _as_local(value: datetime, now: datetime) -> datetime:
    return value.astimezone(now.tzinfo) if now.tzinfo else value


def _local_date(value: datetime, now: datetime) -> date:
    return _as_local(value, now).date()


def driver_stats(
    orders: Iterable[DeliveryOrder], driver: str, now: datetime
) -> DriverStats:
    """Today's cards: the driver's own orders plus open unclaimed ones."""
    today = now.date()
    relevant = [
        order
        for order in orders
        if is_eligible(order)
        and (
            is_mine(order, driver)
            or (order.assigned_driver is None and not order.is_delivered)
        )
    ]
    todays = [
        order
        for order in relevant
        if order.created_at is not None and _local_date(order.created_at, now) == today
    ]
    return DriverStats(
        completed_today=sum(1 for order in todays if order.is_delivered),
        pending_deliveries=sum(1 for order in relevant if not order.is_delivered),
        todays_earnings=sum((commission(order.total) for order in todays), _ZERO),
    )


# ----------------------------------------------------------------------
# Delivery reports
# ----------------------------------------------------------------------


@dataclass(frozen=True)
class DeliveryReport:
    date_range: ReportRange
    total_deliveries: int
    completed_deliveries: int
    total_earnings: Decimal
    average_delivery_time: int
    on_time_rate: int
    status_counts: Dict[str, int] = field(default_factory=dict)


def range_bounds(
    date_range: ReportRange, now: datetime
) -> Optional[Tuple[datetime, datetime]]:
    """Half-open ``[start, end)`` for a range; ``None`` for ``all``.

    Weeks run from Sunday 00:00 through Saturday.
    """
    day_start = datetime.combine(now.date(), time.min, tzinfo=now.tzinfo)
    if date_range is ReportRange.TODAY:
        start, end = day_start, day_start + timedelta(days=1)
    elif date_range is ReportRange.WEEK:
        start = day_start - timedelta(days=(now.weekday() + 1) % 7)
        end = start + timedelta(days=7)
    elif date_range is ReportRange.MONTH:
        start = day_start.replace(day=1)
        end = (start + timedelta(days=32)).replace(day=1)
    else:
        return None
    return start, end


def delivery_report(
    orders: Iterable[DeliveryOrder],
    date_range: Union[ReportRange, str],
    now: datetime,
) -> DeliveryReport:
    date_range = ReportRange(date_range)
    bounds = range_bounds(date_range, now)
    in_range = []
    for order in orders:
        if not is_eligible(order):
            continue
        if bounds is not None:
            if order.created_at is None:
                continue
            created = _as_local(order.created_at, now)
            if not bounds[0] <= created < bounds[1]:
                continue
        in_range.append(order)

    completed = [
        order
        for order in in_range
        if is_completed(order) or order.status == "delivered"
    ]
    durations = [
        minutes
        for minutes in (elapsed_delivery_minutes(order, now) for order in completed)
        if minutes is not None
    ]
    if durations:
        average = round(sum(durations) / len(durations))
        on_time = sum(1 for minutes in durations if minutes <= LATE_DELIVERY_MINUTES)
        on_time_rate = round(on_time * 100 / len(durations))
    else:
        average, on_time_rate = 0, 100

    return DeliveryReport(
        date_range=date_range,
        total_deliveries=len(in_range),
        completed_deliveries=len(completed),
        total_earnings=sum((order.total for order in in_range), _ZERO),
        average_delivery_time=average,
        on_time_rate=on_time_rate,
        status_counts={
            "ready": sum(1 for order in in_range if not order.delivery_status),
            "delivering": sum(
                1 for order in in_range if order.delivery_status == "delivering"
            ),
            "completed": sum(
                1 for order in in_range if order.delivery_status == "delivered"
            ),
        },
    )
