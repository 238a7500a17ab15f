"""Payment domain constants."""

from django.db import models


class PaymentMethod(models.TextChoices):
    CASH = "cash", "Cash"


class PaymentStatus(models.TextChoices):
    COMPLETED = "completed", "Completed"
    VOIDED = "voided", "Voided"
