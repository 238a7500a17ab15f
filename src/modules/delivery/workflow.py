"""Delivery workflow engine.

Classification is a pure function of an order's fields and the driver's
identity.  The precedence below is load-bearing: an order assigned to the
current driver that is still delivering but not paid must land in
``in_progress`` even when other flags look completed.

1. ``delivery_option != "delivery"``   -> excluded
2. no assigned driver                -> unclaimed (Start Delivery)
3. mine, delivering, not paid        -> in_progress (Complete Delivery)
4. delivered / is_delivered / completed -> completed
5. anything else                     -> ready_unclaimed_by_other
"""

from __future__ import annotations

import math
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Dict, List, Optional, Set, Tuple, Union

import structlog

from modules.delivery.collection import PaymentCollectionSession
from modules.delivery.constants import (
    COMMISSION_RATE,
    DEFAULT_STATUS_LABEL,
    DELIVERY,
    STATUS_LABELS,
    Action,
    Bucket,
    MyOrdersView,
)
from modules.delivery.dtos import DeliveryOrder, RecordId, order_key
from modules.delivery.exceptions import ActionNotAllowed
from modules.delivery.resolvers import ReferenceResolver
from modules.delivery.store import OrderStore, utc_now

logger = structlog.get_logger(__name__)

Clock = Callable[[], datetime]

_ACTIONS: Dict[Bucket, Tuple[Action, ...]] = {
    Bucket.UNCLAIMED: (Action.START_DELIVERY,),
    Bucket.IN_PROGRESS: (Action.COMPLETE_DELIVERY,),
    Bucket.COMPLETED: (),
    Bucket.READY_UNCLAIMED_BY_OTHER: (),
}

_CENT = Decimal("0.01")
_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


# ----------------------------------------------------------------------
# Pure rules
# ----------------------------------------------------------------------


def is_eligible(order: DeliveryOrder) -> bool:
    return order.delivery_option == DELIVERY


def is_mine(order: DeliveryOrder, driver: str) -> bool:
    return order.assigned_driver is not None and order.assigned_driver == driver


def is_delivering(order: DeliveryOrder) -> bool:
    return order.delivery_status == "delivering" or order.status == "delivering"


def is_completed(order: DeliveryOrder) -> bool:
    return (
        order.delivery_status == "delivered"
        or order.is_delivered
        or order.status == "completed"
    )


def classify(order: DeliveryOrder, driver: str) -> Optional[Bucket]:
    """Bucket of ``order`` for ``driver``; ``None`` for pickup orders."""
    if not is_eligible(order):
        return None
    if order.assigned_driver is None:
        return Bucket.UNCLAIMED
    if is_mine(order, driver) and is_delivering(order) and not order.is_paid:
        return Bucket.IN_PROGRESS
    if is_completed(order):
        return Bucket.COMPLETED
    return Bucket.READY_UNCLAIMED_BY_OTHER


def available_actions(bucket: Optional[Bucket]) -> Tuple[Action, ...]:
    if bucket is None:
        return ()
    return _ACTIONS[bucket]


def elapsed_delivery_minutes(
    order: DeliveryOrder, now: datetime
) -> Optional[int]:
    """Whole minutes from start to end (or ``now`` while still delivering)."""
    if order.delivery_start_time is None:
        return None
    end = order.delivery_end_time or now
    return math.floor((end - order.delivery_start_time).total_seconds() / 60)


def commission(total: Union[Decimal, int, float, str]) -> Decimal:
    return (Decimal(str(total)) * COMMISSION_RATE).quantize(
        _CENT, rounding=ROUND_HALF_UP
    )


def status_label(status: Optional[str]) -> str:
    return STATUS_LABELS.get((status or "").lower(), DEFAULT_STATUS_LABEL)


def delivery_status_label(order: DeliveryOrder) -> str:
    if order.delivery_status == "delivered" or order.is_delivered:
        return STATUS_LABELS["delivered"]
    if order.delivery_status == "delivering":
        return STATUS_LABELS["delivering"]
    return DEFAULT_STATUS_LABEL


@dataclass(frozen=True)
class OrderCard:
    """One row of the driver's board."""

    order: DeliveryOrder
    bucket: Bucket
    actions: Tuple[Action, ...]
    customer_name: str
    delivery_address: str
    customer_phone: str
    status_label: str
    delivery_status_label: str
    elapsed_minutes: Optional[int]
    commission: Decimal

    @property
    def order_id(self) -> str:
        return self.order.key


# ----------------------------------------------------------------------
# Driver-facing operations
# ----------------------------------------------------------------------


class DeliveryWorkflow:
    """Board and commands for one driver over a shared ``OrderStore``."""

    def __init__(
        self,
        store: OrderStore,
        driver: str,
        resolver: Optional[ReferenceResolver] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        if not driver or not driver.strip():
            raise ValueError("Driver identity is required.")
        self._store = store
        self._driver = driver
        self._resolver = resolver or ReferenceResolver()
        self._clock = clock or utc_now
        self._lock = threading.Lock()
        self._starting: Set[str] = set()

    @property
    def driver(self) -> str:
        return self._driver

    @property
    def store(self) -> OrderStore:
        return self._store

    @property
    def resolver(self) -> ReferenceResolver:
        return self._resolver

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def card(self, order: DeliveryOrder) -> Optional[OrderCard]:
        bucket = classify(order, self._driver)
        if bucket is None:
            return None
        return OrderCard(
            order=order,
            bucket=bucket,
            actions=available_actions(bucket),
            customer_name=self._resolver.customer_name(order),
            delivery_address=self._resolver.customer_address(order),
            customer_phone=self._resolver.customer_phone(order),
            status_label=status_label(order.status),
            delivery_status_label=delivery_status_label(order),
            elapsed_minutes=elapsed_delivery_minutes(order, self._clock()),
            commission=commission(order.total),
        )

    def board(self) -> List[OrderCard]:
        cards = (self.card(order) for order in self._store.get_orders())
        return [card for card in cards if card is not None]

    def classify_orders(self) -> Dict[Bucket, List[DeliveryOrder]]:
        buckets: Dict[Bucket, List[DeliveryOrder]] = {b: [] for b in Bucket}
        for order in self._store.get_orders():
            bucket = classify(order, self._driver)
            if bucket is not None:
                buckets[bucket].append(order)
        return buckets

    def my_orders(
        self,
        view: Union[MyOrdersView, str] = MyOrdersView.ALL,
        limit: Optional[int] = None,
    ) -> List[OrderCard]:
        """The driver's tabs, newest first."""
        view = MyOrdersView(view)
        cards = [card for card in self.board() if self._in_view(card.order, view)]
        cards.sort(key=lambda c: c.order.created_at or _EPOCH, reverse=True)
        return cards[:limit] if limit is not None else cards

    def _in_view(self, order: DeliveryOrder, view: MyOrdersView) -> bool:
        mine = is_mine(order, self._driver)
        unclaimed = order.assigned_driver is None
        delivered = order.delivery_status == "delivered" or order.is_delivered
        if view is MyOrdersView.ALL:
            return (mine and not order.is_paid) or unclaimed
        if view is MyOrdersView.PENDING:
            return (unclaimed or mine) and order.delivery_status != "delivered"
        if view is MyOrdersView.DELIVERING:
            return mine and order.delivery_status == "delivering"
        return mine and delivered and order.is_paid

    def all_orders(
        self,
        search: str = "",
        sort_key: str = "created_at",
        descending: bool = True,
    ) -> List[OrderCard]:
        if sort_key not in ("created_at", "total"):
            raise ValueError(f"Cannot sort orders by {sort_key!r}.")
        term = search.strip().lower()
        cards = [
            card
            for card in self.board()
            if not term
            or term in card.order_id.lower()
            or term in card.customer_name.lower()
            or term in card.delivery_address.lower()
        ]
        if sort_key == "total":
            cards.sort(key=lambda c: c.order.total, reverse=descending)
        else:
            cards.sort(key=lambda c: c.order.created_at or _EPOCH, reverse=descending)
        return cards

    def is_starting(self, order_id: RecordId) -> bool:
        with self._lock:
            return order_key(order_id) in self._starting

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def start_delivery(self, order_id: RecordId) -> DeliveryOrder:
        """Claim an unclaimed order for this driver.

        Raises:
            ActionNotAllowed: the order is unknown, not unclaimed, or a
                start for it is already in flight.
            OrderUpdateFailed: the backend did not apply the claim.
        """
        key = order_key(order_id)
        log = logger.bind(order_id=key, driver=self._driver)
        with self._lock:
            if key in self._starting:
                log.info("workflow.start_ignored", reason="in_flight")
                raise ActionNotAllowed(f"Order {key} is already being started.")
            order = self._store.get_order(key)
            if order is None:
                raise ActionNotAllowed(f"Order {key} is not on the board.")
            bucket = classify(order, self._driver)
            if Action.START_DELIVERY not in available_actions(bucket):
                where = bucket.value if bucket else "pickup"
                raise ActionNotAllowed(f"Order {key} cannot be started from {where}.")
            self._starting.add(key)

        try:
            updated = self._store.update_order_status(
                order.id,
                assigned_driver=self._driver,
                delivery_status="delivering",
                status="pending",
                delivery_start_time=self._clock(),
            )
        finally:
            with self._lock:
                self._starting.discard(key)
        log.info("workflow.delivery_started")
        return updated

    def open_collection(self, order_id: RecordId) -> PaymentCollectionSession:
        """Open the cash collection dialog for an order in progress."""
        key = order_key(order_id)
        order = self._store.get_order(key)
        if order is None:
            raise ActionNotAllowed(f"Order {key} is not on the board.")
        if classify(order, self._driver) is not Bucket.IN_PROGRESS:
            raise ActionNotAllowed(f"Order {key} is not in progress for {self._driver}.")
        session = PaymentCollectionSession(
            self._store,
            driver=self._driver,
            clock=self._clock,
            resolver=self._resolver,
        )
        session.open(order)
        return session

    def close(self) -> None:
        with self._lock:
            self._starting.clear()
