"""Payment service layer (Use Cases).

A payment is recorded before the order it settles is completed; the two
writes are separate requests from the driver's device.  When the order
completion fails the client voids the orphaned payment, which is the
only mutation a payment ever sees.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional

import structlog
from django.db import transaction
from django.utils import timezone

from modules.payments.constants import PaymentMethod, PaymentStatus
from modules.payments.events import PaymentCollected, PaymentVoided
from modules.payments.exceptions import (
    PaymentAlreadySettled,
    PaymentNotFound,
    PaymentOrderNotFound,
)
from modules.payments.models import Payment

if TYPE_CHECKING:
    from modules.core.repositories.interfaces import EntityId
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.payments.dtos import CreatePaymentDTO
    from modules.payments.repositories.interfaces import IPaymentRepository

logger = structlog.get_logger(__name__)


class PaymentService:
    """Application service for Payment use-cases.

    Receives repositories via constructor injection (DIP).
    """

    def __init__(
        self,
        payment_repository: IPaymentRepository,
        order_repository: IOrderRepository,
    ) -> None:
        self._payment_repo = payment_repository
        self._order_repo = order_repository

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_payment(self, dto: CreatePaymentDTO) -> Payment:
        """Record cash collected for an order.

        Raises:
            PaymentOrderNotFound: the order does not exist.
        """
        log = logger.bind(order_id=dto.order_id, collected_by=dto.collected_by)

        order = self._order_repo.get_by_id(dto.order_id)
        if not order:
            log.warning("payment.order_not_found")
            raise PaymentOrderNotFound(f"Order {dto.order_id} not found.")

        now = timezone.now()
        payment = Payment(
            order_id=order.pk,
            amount=dto.amount,
            collected_by=dto.collected_by,
            method=PaymentMethod.CASH,
            status=PaymentStatus.COMPLETED,
            collected_at=dto.collected_at or now,
            paid_at=dto.paid_at or now,
            customer_name=dto.customer_name or order.customer_display,
            order_total=dto.order_total if dto.order_total is not None else order.total,
        )
        payment = self._payment_repo.save(payment)
        payment.add_domain_event(
            PaymentCollected(
                aggregate_id=payment.pk,
                order_id=order.pk,
                amount=payment.amount,
                collected_by=payment.collected_by,
            )
        )
        self._payment_repo.save(payment)

        if payment.amount != order.total:
            log.info(
                "payment.amount_differs_from_total",
                amount=str(payment.amount),
                total=str(order.total),
            )
        log.info("payment.created", payment_id=payment.pk, amount=str(payment.amount))
        return payment

    @transaction.atomic
    def void_payment(self, payment_id: EntityId, reason: str = "") -> Payment:
        """Void a payment whose order completion failed.

        Idempotent: voiding an already voided payment returns it unchanged.

        Raises:
            PaymentNotFound: the payment does not exist.
            PaymentAlreadySettled: the payment backs a paid order.
        """
        payment = self._payment_repo.get_for_update(payment_id)
        if not payment:
            raise PaymentNotFound(f"Payment {payment_id} not found.")

        log = logger.bind(payment_id=payment.pk, order_id=payment.order_id)

        if payment.status == PaymentStatus.VOIDED:
            log.info("payment.void_noop")
            return payment

        order = self._order_repo.get_by_id(payment.order_id)
        if order and order.is_paid and order.payment_id == payment.pk:
            log.warning("payment.void_rejected_settled")
            raise PaymentAlreadySettled(
                f"Payment {payment.pk} settles order {payment.order_id}."
            )

        payment.status = PaymentStatus.VOIDED
        payment.voided_at = timezone.now()
        payment.void_reason = reason
        payment.add_domain_event(
            PaymentVoided(
                aggregate_id=payment.pk,
                order_id=payment.order_id,
                reason=reason,
            )
        )
        self._payment_repo.save(payment)
        log.warning("payment.voided", reason=reason)
        return payment

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_payment(self, payment_id: EntityId) -> Payment:
        """Retrieve a single payment by ID.

        Raises:
            PaymentNotFound: if the payment does not exist.
        """
        payment = self._payment_repo.get_by_id(payment_id)
        if not payment:
            raise PaymentNotFound(f"Payment {payment_id} not found.")
        return payment

    def list_payments(self, filters: Optional[Dict[str, Any]] = None) -> List[Payment]:
        """Return a list of payments, optionally filtered."""
        return self._payment_repo.list(filters)
