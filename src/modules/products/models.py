"""Menu items that order lines point at.

Drivers only read products to label order lines. Inactive or retired
products stay queryable by id so old orders keep their names.
"""

from __future__ import annotations

from decimal import Decimal

import structlog

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import SoftDeleteModel

logger = structlog.get_logger(__name__)


class ProductStatus(models.TextChoices):
    ACTIVE = "active", "Active"
    INACTIVE = "inactive", "Inactive"


class Product(SoftDeleteModel):
    # Arabic label first, English second; either may be blank.
    name = models.CharField(max_length=255)
    name_en = models.CharField(max_length=255, blank=True, default="")
    price = models.DecimalField(
        max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal("0.01"))]
    )
    status = models.CharField(
        max_length=20, choices=ProductStatus.choices, default=ProductStatus.ACTIVE
    )

    class Meta:
        db_table = "products"
        ordering = ["name"]
        indexes = [models.Index(fields=["status"], name="products_status_idx")]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(price__gt=0), name="products_price_positive"
            ),
        ]

    def clean(self) -> None:
        super().clean()
        if self.price is not None and self.price <= 0:
            raise ValidationError({"price": "Price must be greater than zero."})

    def save(self, *args, **kwargs) -> None:
        created = self._state.adding
        super().save(*args, **kwargs)
        if created:
            logger.info("product.created", product_id=self.pk, name=self.name)

    @property
    def display_name(self) -> str:
        """Label shown on order lines, ``Product #<id>`` as a last resort."""
        return self.name or self.name_en or f"Product #{self.pk}"

    def __str__(self) -> str:
        return f"#{self.pk} - {self.display_name}"
