"""Cash collection for a delivery in progress.

    IDLE -> ENTERING_AMOUNT -> CONFIRMING -> SUBMITTING -> COMPLETED
                 ^                 |              |
                 +------ back -----+-- failure ---+

Confirming creates the Payment first and then completes the order.  If
the order update fails after the payment exists, the payment is voided
so a paid-but-undelivered state is never left behind.
"""

from __future__ import annotations

import threading
from datetime import datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import TYPE_CHECKING, Callable, NoReturn, Optional

import structlog
from pydantic import ValidationError as PydanticValidationError

from modules.delivery.constants import AMOUNT_TOLERANCE, ValidationCode
from modules.delivery.dtos import DeliveryOrder, PaymentRecord, RecordId
from modules.delivery.exceptions import (
    GatewayError,
    InvalidCollectionState,
    OrderUpdateFailed,
    PaymentValidationError,
)
from modules.delivery.store import OrderStore, utc_now

if TYPE_CHECKING:
    from modules.delivery.gateways.interfaces import IDeliveryGateway
    from modules.delivery.resolvers import ReferenceResolver

logger = structlog.get_logger(__name__)

Clock = Callable[[], datetime]


class CollectionState(str, Enum):
    IDLE = "idle"
    ENTERING_AMOUNT = "entering_amount"
    CONFIRMING = "confirming"
    SUBMITTING = "submitting"
    COMPLETED = "completed"


def parse_amount(text: str) -> Optional[Decimal]:
    """Positive finite decimal from user input, else ``None``."""
    try:
        amount = Decimal(str(text).strip())
    except InvalidOperation:
        return None
    if not amount.is_finite() or amount <= 0:
        return None
    return amount


def amount_matches(amount: Decimal, total: Decimal) -> bool:
    return abs(amount - total) <= AMOUNT_TOLERANCE


class PaymentCollectionSession:
    """State of one collection dialog.

    ``confirm()`` is guarded by ``processing``: a call made while a
    submission is running returns ``None`` and touches nothing.
    """

    def __init__(
        self,
        store: OrderStore,
        driver: str,
        gateway: Optional[IDeliveryGateway] = None,
        clock: Optional[Clock] = None,
        resolver: Optional[ReferenceResolver] = None,
    ) -> None:
        self._store = store
        self._gateway = gateway or store.gateway
        self._driver = driver
        self._clock = clock or utc_now
        self._resolver = resolver
        self._lock = threading.Lock()

        self.state = CollectionState.IDLE
        self.order: Optional[DeliveryOrder] = None
        self.amount = ""
        self.error: Optional[str] = None
        self.processing = False
        self.payment: Optional[PaymentRecord] = None
        self.completed_order: Optional[DeliveryOrder] = None
        self._validated_amount: Optional[Decimal] = None

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def open(self, order: DeliveryOrder) -> None:
        """Start collecting for ``order`` with the amount pre-filled."""
        self._require(CollectionState.IDLE, CollectionState.COMPLETED)
        if order.is_paid:
            raise InvalidCollectionState(f"Order {order.key} is already paid.")
        if not order.total or order.total <= 0:
            self.error = ValidationCode.INVALID_ORDER_TOTAL
            raise PaymentValidationError(
                ValidationCode.INVALID_ORDER_TOTAL,
                f"Order {order.key} has no total to collect.",
            )
        self.order = order
        self.amount = f"{order.total:.2f}"
        self.error = None
        self.payment = None
        self.completed_order = None
        self._validated_amount = None
        self.state = CollectionState.ENTERING_AMOUNT

    def set_amount(self, text: str) -> None:
        self._require(CollectionState.ENTERING_AMOUNT)
        self.amount = text
        self.error = None

    def submit(self) -> Decimal:
        """Validate the entered amount and move to confirmation.

        Raises:
            PaymentValidationError: ``invalidAmount`` or ``amountMismatch``;
                the session stays in ENTERING_AMOUNT with ``error`` set.
        """
        self._require(CollectionState.ENTERING_AMOUNT)
        order = self._open_order()
        amount = parse_amount(self.amount)
        if amount is None:
            self._reject(ValidationCode.INVALID_AMOUNT, "Enter a positive amount.")
        if not amount_matches(amount, order.total):
            self._reject(
                ValidationCode.AMOUNT_MISMATCH,
                f"Amount {amount} does not match order total {order.total}.",
            )
        self._validated_amount = amount
        self.error = None
        self.state = CollectionState.CONFIRMING
        return amount

    def back(self) -> None:
        self._require(CollectionState.CONFIRMING)
        self.state = CollectionState.ENTERING_AMOUNT

    def confirm(self) -> Optional[DeliveryOrder]:
        """Record the payment and complete the order.

        Returns the completed order, or ``None`` when a submission is
        already running. Any failure puts the session back in
        ENTERING_AMOUNT with ``paymentError`` before it propagates.

        Raises:
            GatewayError: the payment was not created.
            OrderUpdateFailed: the order was not completed; the payment
                has been voided.
        """
        with self._lock:
            if self.processing:
                logger.info("collection.confirm_ignored", order_id=self._order_key)
                return None
            self._require(CollectionState.CONFIRMING)
            order = self._open_order()
            amount = self._validated_amount
            if amount is None:
                raise InvalidCollectionState("No validated amount to collect.")
            self.processing = True
            self.state = CollectionState.SUBMITTING

        try:
            completed = self._submit(order, amount)
        except Exception:
            with self._lock:
                self.processing = False
                self.error = ValidationCode.PAYMENT_ERROR
                self.state = CollectionState.ENTERING_AMOUNT
            raise

        with self._lock:
            self.completed_order = completed
            self.amount = ""
            self.error = None
            self._validated_amount = None
            self.processing = False
            self.state = CollectionState.COMPLETED
        return completed

    def cancel(self) -> None:
        """Close the dialog; not allowed while submitting."""
        with self._lock:
            if self.state is CollectionState.SUBMITTING:
                raise InvalidCollectionState("Cannot cancel while submitting.")
            self.state = CollectionState.IDLE
            self.order = None
            self.amount = ""
            self.error = None
            self._validated_amount = None

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @property
    def _order_key(self) -> Optional[str]:
        return self.order.key if self.order else None

    def _open_order(self) -> DeliveryOrder:
        if self.order is None:
            raise InvalidCollectionState("No order is open for collection.")
        return self.order

    def _require(self, *states: CollectionState) -> None:
        if self.state not in states:
            raise InvalidCollectionState(
                f"Cannot do that while {self.state.value}; "
                f"expected {', '.join(s.value for s in states)}."
            )

    def _reject(self, code: str, message: str) -> NoReturn:
        self.error = code
        logger.info("collection.amount_rejected", order_id=self._order_key, code=code)
        raise PaymentValidationError(code, message)

    def _customer_name(self, order: DeliveryOrder) -> str:
        if self._resolver is not None:
            return self._resolver.customer_name(order)
        return order.customer_name or ""

    def _submit(self, order: DeliveryOrder, amount: Decimal) -> DeliveryOrder:
        now = self._clock()
        log = logger.bind(order_id=order.key, driver=self._driver, amount=str(amount))

        response = self._gateway.create_payment(
            {
                "order_id": order.id,
                "amount": amount,
                "collected_by": self._driver,
                "method": "cash",
                "status": "completed",
                "collected_at": now,
                "paid_at": now,
                "customer_name": self._customer_name(order),
                "order_total": order.total,
            }
        )
        try:
            payment = PaymentRecord.model_validate(response)
        except PydanticValidationError as exc:
            raw_id = response.get("id") if isinstance(response, dict) else None
            log.error(
                "collection.payment_response_invalid",
                payment_id=None if raw_id is None else str(raw_id),
                errors=exc.error_count(),
            )
            if raw_id is not None:
                self._void(raw_id, order.id, reason="payment response unreadable")
            raise GatewayError("Payment response could not be read.") from exc
        self.payment = payment
        log = log.bind(payment_id=str(payment.id))
        log.info("collection.payment_created")

        try:
            completed = self._store.update_order_status(
                order.id,
                status="delivered",
                delivery_status="delivered",
                is_delivered=True,
                is_paid=True,
                paid_at=now,
                delivery_end_time=now,
                payment_id=payment.id,
            )
        except OrderUpdateFailed as exc:
            log.warning("collection.order_update_failed", error=exc.reason)
            self._void(payment.id, order.id, reason=f"Order update failed: {exc.reason}")
            raise
        log.info("collection.completed")
        return completed

    def _void(self, payment_id: RecordId, order_id: RecordId, reason: str) -> None:
        try:
            self._gateway.void_payment(payment_id, reason=reason)
        except GatewayError as exc:
            logger.error(
                "collection.void_failed",
                payment_id=str(payment_id),
                order_id=str(order_id),
                error=str(exc),
            )
            return
        self.payment = None
        logger.info("collection.payment_voided", payment_id=str(payment_id))
