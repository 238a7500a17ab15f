"""Customer reference table.

Customers are created by the selling workflow; the delivery workflow only
reads them to resolve ``Customer #<id>`` references into a display name,
an address and a phone number.
"""

from __future__ import annotations

import structlog
from django.db import models

from modules.core.models import SoftDeleteModel

logger = structlog.get_logger(__name__)


class Customer(SoftDeleteModel):
    """Customer aggregate root."""

    name = models.CharField(max_length=255)
    phone = models.CharField(max_length=32, blank=True, default="")
    address = models.TextField(blank=True, default="")
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "customers"
        ordering = ["name"]
        indexes = [
            models.Index(fields=["is_active"], name="customers_active_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.name} (#{self.pk})"
