"""Backend gateways for the delivery client."""

from modules.delivery.gateways.http_gateway import HttpDeliveryGateway
from modules.delivery.gateways.interfaces import IDeliveryGateway

__all__ = ["HttpDeliveryGateway", "IDeliveryGateway"]
