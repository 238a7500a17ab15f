"""Orders as the delivery workflow sees them.

An order carries two independent state fields: ``status`` (the selling
side's view, free text) and ``delivery_status`` (``""``, ``delivering``
or ``delivered``). A claimed order is typically ``pending``/``delivering``.
Changes to either field are written to ``OrderStatusHistory`` by
``signals.py``; ``is_paid`` only flips together with a verified payment
reference, which ``OrderService`` checks before saving.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import BaseModel, SoftDeleteModel
from modules.orders.constants import DeliveryOption, DeliveryStatus, OrderStatus
from shared.domain.events import DomainEventMixin

_MONEY = {"max_digits": 10, "decimal_places": 2}


class Order(DomainEventMixin, SoftDeleteModel):
    customer = models.ForeignKey(
        "customers.Customer",
        on_delete=models.PROTECT,
        related_name="orders",
        null=True,
        blank=True,
    )
    delivery_option = models.CharField(
        max_length=20, choices=DeliveryOption.choices, default=DeliveryOption.PICKUP
    )
    status = models.CharField(max_length=32, default=OrderStatus.PENDING)
    delivery_status = models.CharField(
        max_length=20, choices=DeliveryStatus.choices, blank=True, default=""
    )
    # NULL means unclaimed; drivers are identified by display name.
    assigned_driver = models.CharField(  # noqa: DJ01
        max_length=150, null=True, blank=True
    )
    delivery_start_time = models.DateTimeField(null=True, blank=True)
    delivery_end_time = models.DateTimeField(null=True, blank=True)
    is_delivered = models.BooleanField(default=False)
    is_paid = models.BooleanField(default=False)
    paid_at = models.DateTimeField(null=True, blank=True)
    payment_id = models.BigIntegerField(null=True, blank=True)
    total = models.DecimalField(default=Decimal("0.00"), **_MONEY)
    delivery_address = models.TextField(blank=True, default="")
    customer_phone = models.CharField(max_length=32, blank=True, default="")
    notes = models.TextField(blank=True, default="")

    class Meta:
        db_table = "orders"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="orders_status_idx"),
            models.Index(fields=["-created_at"], name="orders_created_idx"),
            models.Index(
                fields=["delivery_option", "assigned_driver"],
                name="orders_delivery_driver_idx",
            ),
        ]

    @property
    def customer_display(self) -> str:
        """Customer name, or ``Customer #<id>`` when the row has none."""
        if self.customer_id is None:
            return ""
        name = self.customer.name if self.customer else ""
        return name or f"Customer #{self.customer_id}"

    def __str__(self) -> str:
        return f"Order #{self.pk} ({self.status}/{self.delivery_status or '-'})"


class OrderItem(SoftDeleteModel):
    """A product line; ``unit_price`` is copied from the product when omitted."""

    order = models.ForeignKey(
        "orders.Order", on_delete=models.CASCADE, related_name="items"
    )
    product = models.ForeignKey(
        "products.Product", on_delete=models.PROTECT, related_name="order_items"
    )
    quantity = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    unit_price = models.DecimalField(**_MONEY)
    subtotal = models.DecimalField(editable=False, **_MONEY)

    class Meta:
        db_table = "order_items"
        ordering = ["created_at", "id"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="order_items_quantity_positive",
            ),
        ]

    def clean(self) -> None:
        super().clean()
        if self.quantity is not None and self.quantity < 1:
            raise ValidationError({"quantity": "Quantity must be at least 1."})

    def save(self, *args: Any, **kwargs: Any) -> None:
        if not self.unit_price:
            price = getattr(self.product, "price", None)
            if price is None:
                raise ValidationError({"unit_price": "Product price is required."})
            self.unit_price = price
        self.subtotal = self.quantity * self.unit_price
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.product} x{self.quantity} ({self.subtotal})"


class OrderStatusHistory(BaseModel):
    """One row per change of ``status`` or ``delivery_status``.

    ``changed_by`` holds the driver or username behind the update and is
    empty for system changes. Rows are never edited.
    """

    order = models.ForeignKey(
        "orders.Order", on_delete=models.CASCADE, related_name="status_history"
    )
    old_status = models.CharField(max_length=32, null=True, blank=True)  # noqa: DJ01
    new_status = models.CharField(max_length=32)
    old_delivery_status = models.CharField(max_length=20, blank=True, default="")
    new_delivery_status = models.CharField(max_length=20, blank=True, default="")
    changed_by = models.CharField(max_length=150, blank=True, default="")
    notes = models.TextField(blank=True, default="")

    class Meta:
        db_table = "order_status_history"
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["order", "-created_at"], name="osh_order_created_idx"),
        ]

    def __str__(self) -> str:
        return (
            f"{self.order_id}: {self.old_status} -> {self.new_status} "
            f"({self.old_delivery_status or '-'} -> {self.new_delivery_status or '-'})"
        )
