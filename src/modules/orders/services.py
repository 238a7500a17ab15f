"""Order service layer (Use Cases).

The delivery workflow only ever *updates* orders: it claims them,
completes them and marks them paid.  All writes are atomic and the
service defines the unit-of-work boundary.

Business rules enforced:
- Unknown fields never reach the model (``UpdateOrderDTO`` forbids them).
- ``is_paid`` can only become true when the update references a completed
  payment for the same order whose amount is within
  ``PAYMENT_AMOUNT_TOLERANCE`` of the order total.
- Every change of ``status``/``delivery_status`` is recorded in the
  status history with the caller as ``changed_by``.
- No optimistic locking: concurrent claims by two drivers resolve as
  last write wins.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional

import structlog
from django.db import transaction

from modules.orders.constants import PAYMENT_AMOUNT_TOLERANCE
from modules.orders.events import OrderDelivered, OrderUpdated
from modules.orders.exceptions import (
    InvalidOrderUpdate,
    OrderNotFound,
    UnverifiedPayment,
)

if TYPE_CHECKING:
    from modules.core.repositories.interfaces import EntityId
    from modules.orders.dtos import UpdateOrderDTO
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.payments.repositories.interfaces import IPaymentRepository

logger = structlog.get_logger(__name__)


class OrderService:
    """Application service for Order use-cases.

    Receives repositories via constructor injection (DIP).
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        payment_repository: IPaymentRepository,
    ) -> None:
        self._order_repo = order_repository
        self._payment_repo = payment_repository

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def update_order(
        self,
        order_id: EntityId,
        dto: UpdateOrderDTO,
        changed_by: str = "",
    ) -> Order:
        """Apply a partial update and return the authoritative order.

        Raises:
            OrderNotFound: order does not exist.
            InvalidOrderUpdate: a paid order would lose its paid flag.
            UnverifiedPayment: ``is_paid`` set without a matching payment.
        """
        order = self._order_repo.get_for_update(order_id)
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")

        changes = dto.changes()
        log = logger.bind(order_id=order.pk, fields=sorted(changes))

        if not changes:
            log.info("order.update_noop")
            return self.get_order(order.pk)

        if order.is_paid and changes.get("is_paid") is False:
            log.warning("order.unpay_rejected")
            raise InvalidOrderUpdate("A paid order cannot be marked unpaid.")

        if changes.get("is_paid") and not order.is_paid:
            self._verify_payment(order, changes.get("payment_id", order.payment_id))

        was_delivered = order.is_delivered
        changed_fields = []
        for field, value in changes.items():
            if getattr(order, field) != value:
                setattr(order, field, value)
                changed_fields.append(field)

        if not changed_fields:
            log.info("order.update_noop")
            return self.get_order(order.pk)

        order._status_changed_by = changed_by
        order._status_change_notes = _history_note(changes)
        order.add_domain_event(
            OrderUpdated(
                aggregate_id=order.pk,
                changed_fields=tuple(sorted(changed_fields)),
                changed_by=changed_by,
            )
        )
        if order.is_delivered and not was_delivered:
            order.add_domain_event(
                OrderDelivered(
                    aggregate_id=order.pk,
                    payment_id=order.payment_id,
                    assigned_driver=order.assigned_driver,
                )
            )
        self._order_repo.save(order)

        log.info(
            "order.updated",
            changed_fields=sorted(changed_fields),
            changed_by=changed_by,
            status=order.status,
            delivery_status=order.delivery_status,
        )
        return self.get_order(order.pk)

    def _verify_payment(self, order: Order, payment_id: Optional[int]) -> None:
        log = logger.bind(order_id=order.pk, payment_id=payment_id)
        if payment_id is None:
            log.warning("order.paid_without_payment")
            raise UnverifiedPayment("Marking an order paid requires a payment_id.")

        payment = self._payment_repo.get_by_id(payment_id)
        if payment is None or payment.order_id != order.pk:
            log.warning("order.payment_mismatch")
            raise UnverifiedPayment(
                f"Payment {payment_id} does not belong to order {order.pk}."
            )
        if not payment.is_completed:
            log.warning("order.payment_not_completed", payment_status=payment.status)
            raise UnverifiedPayment(f"Payment {payment_id} is {payment.status}.")
        if abs(payment.amount - order.total) > PAYMENT_AMOUNT_TOLERANCE:
            log.warning(
                "order.payment_amount_mismatch",
                amount=str(payment.amount),
                total=str(order.total),
            )
            raise UnverifiedPayment(
                f"Payment amount {payment.amount} does not match "
                f"order total {order.total}."
            )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, order_id: EntityId) -> Order:
        """Retrieve a single order by ID.

        Raises:
            OrderNotFound: if the order does not exist.
        """
        order = self._order_repo.get_by_id(order_id)
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    def list_orders(self, filters: Optional[Dict[str, Any]] = None) -> List[Order]:
        """Return a list of orders, optionally filtered."""
        return self._order_repo.list(filters)


def _history_note(changes: Dict[str, Any]) -> str:
    if changes.get("is_paid"):
        return f"Paid with payment {changes.get('payment_id')}"
    if changes.get("assigned_driver"):
        return f"Claimed by {changes['assigned_driver']}"
    return ""
