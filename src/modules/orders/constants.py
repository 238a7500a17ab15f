"""Order domain constants.

``status`` is free form on the wire: the selling workflow may write values
this module does not know about.  The values below are the ones the
delivery workflow attaches meaning to.
"""

from decimal import Decimal

from django.db import models


class DeliveryOption(models.TextChoices):
    PICKUP = "pickup", "Pickup"
    DELIVERY = "delivery", "Delivery"


class OrderStatus:
    PENDING = "pending"
    DELIVERING = "delivering"
    DELIVERED = "delivered"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class DeliveryStatus(models.TextChoices):
    DELIVERING = "delivering", "Delivering"
    DELIVERED = "delivered", "Delivered"


# Absolute difference allowed between a collected amount and the order total.
PAYMENT_AMOUNT_TOLERANCE = Decimal("0.01")
