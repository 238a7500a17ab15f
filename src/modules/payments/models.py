"""Payment model.

Business rules implemented:
- Amount must be greater than zero.
- Only cash is collected by the delivery workflow.
- A payment is immutable once created, except for the single
  ``completed -> voided`` transition used to compensate a failed order
  completion.
- ``customer_name`` and ``order_total`` are snapshots taken at
  collection time for the payment ledger.
"""

from __future__ import annotations

from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from modules.core.models import BaseModel
from modules.payments.constants import PaymentMethod, PaymentStatus
from shared.domain.events import DomainEventMixin


class Payment(DomainEventMixin, BaseModel):
    """Cash collected by a driver for a single order."""

    order: models.ForeignKey = models.ForeignKey(
        "orders.Order",
        on_delete=models.PROTECT,
        related_name="payments",
    )
    amount: models.DecimalField = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
    )
    collected_by: models.CharField = models.CharField(max_length=150)
    method: models.CharField = models.CharField(
        max_length=20,
        choices=PaymentMethod.choices,
        default=PaymentMethod.CASH,
    )
    status: models.CharField = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.COMPLETED,
    )
    collected_at: models.DateTimeField = models.DateTimeField(default=timezone.now)
    paid_at: models.DateTimeField = models.DateTimeField(null=True, blank=True)
    voided_at: models.DateTimeField = models.DateTimeField(null=True, blank=True)
    void_reason: models.TextField = models.TextField(blank=True, default="")
    customer_name: models.CharField = models.CharField(
        max_length=255, blank=True, default=""
    )
    order_total: models.DecimalField = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True,
    )

    class Meta:
        db_table = "payments"
        ordering = ["-collected_at", "-id"]
        indexes = [
            models.Index(fields=["order", "status"], name="payments_order_status_idx"),
            models.Index(fields=["collected_by"], name="payments_collector_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gt=0),
                name="payments_amount_positive",
            ),
        ]

    @property
    def is_completed(self) -> bool:
        return self.status == PaymentStatus.COMPLETED

    def __str__(self) -> str:
        return f"Payment #{self.pk} order={self.order_id} {self.amount} ({self.status})"
