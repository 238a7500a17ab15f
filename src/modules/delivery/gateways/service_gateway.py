"""In-process implementation of the delivery gateway.

Calls the backend service layer directly and returns the same serialized
payloads as the REST API, so the client core can run inside the Django
process (management commands, tests) without an HTTP hop.  Domain
exceptions are mapped to ``GatewayError`` with the status code the API
would have answered.
"""

from __future__ import annotations

from typing import Dict, List, Optional

import structlog
from pydantic import ValidationError as PydanticValidationError

from modules.core.responses import validation_detail
from modules.customers.repositories.django_repository import CustomerDjangoRepository
from modules.customers.serializers import CustomerSerializer
from modules.customers.services import CustomerService
from modules.delivery.dtos import RecordId
from modules.delivery.exceptions import GatewayError
from modules.delivery.gateways.interfaces import IDeliveryGateway, Payload
from modules.orders.dtos import UpdateOrderDTO
from modules.orders.exceptions import (
    InvalidOrderUpdate,
    OrderNotFound,
    UnverifiedPayment,
)
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.serializers import OrderDetailSerializer, OrderSerializer
from modules.orders.services import OrderService
from modules.payments.dtos import CreatePaymentDTO
from modules.payments.exceptions import (
    PaymentAlreadySettled,
    PaymentNotFound,
    PaymentOrderNotFound,
)
from modules.payments.repositories.django_repository import PaymentDjangoRepository
from modules.payments.serializers import PaymentSerializer
from modules.payments.services import PaymentService
from modules.products.repositories.django_repository import ProductDjangoRepository
from modules.products.serializers import ProductSerializer
from modules.products.services import ProductService

logger = structlog.get_logger(__name__)

_STATUS_BY_EXCEPTION: Dict[type, int] = {
    OrderNotFound: 404,
    PaymentNotFound: 404,
    PaymentOrderNotFound: 404,
    InvalidOrderUpdate: 400,
    UnverifiedPayment: 400,
    PaymentAlreadySettled: 409,
}

_DOMAIN_ERRORS = tuple(_STATUS_BY_EXCEPTION)


class ServiceDeliveryGateway(IDeliveryGateway):
    """Delivery gateway backed by the in-process service layer.

    ``actor`` is recorded as ``changed_by`` on order updates, the way the
    API records the authenticated user.
    """

    def __init__(self, actor: str = "") -> None:
        self._actor = actor
        order_repo = OrderDjangoRepository()
        payment_repo = PaymentDjangoRepository()
        self._orders = OrderService(
            order_repository=order_repo, payment_repository=payment_repo
        )
        self._payments = PaymentService(
            payment_repository=payment_repo, order_repository=order_repo
        )
        self._customers = CustomerService(repository=CustomerDjangoRepository())
        self._products = ProductService(repository=ProductDjangoRepository())

    def _fail(self, operation: str, exc: Exception) -> GatewayError:
        if isinstance(exc, PydanticValidationError):
            status_code, payload = 400, {"detail": validation_detail(exc)}
        else:
            status_code, payload = _STATUS_BY_EXCEPTION[type(exc)], {"detail": str(exc)}
        logger.warning(
            "delivery_gateway.service_error",
            operation=operation,
            status_code=status_code,
            error=str(exc),
        )
        return GatewayError(
            f"{operation} failed: {exc}", status_code=status_code, payload=payload
        )

    def list_orders(self) -> List[Payload]:
        return list(OrderSerializer(self._orders.list_orders(), many=True).data)

    def update_order(self, order_id: RecordId, payload: Payload) -> Optional[Payload]:
        try:
            dto = UpdateOrderDTO.model_validate(payload)
            order = self._orders.update_order(order_id, dto, changed_by=self._actor)
        except (PydanticValidationError, *_DOMAIN_ERRORS) as exc:
            raise self._fail("update_order", exc) from exc
        return dict(OrderDetailSerializer(order).data)

    def create_payment(self, payload: Payload) -> Payload:
        try:
            dto = CreatePaymentDTO.model_validate(payload)
            payment = self._payments.create_payment(dto)
        except (PydanticValidationError, *_DOMAIN_ERRORS) as exc:
            raise self._fail("create_payment", exc) from exc
        return dict(PaymentSerializer(payment).data)

    def void_payment(self, payment_id: RecordId, reason: str = "") -> Payload:
        try:
            payment = self._payments.void_payment(payment_id, reason=reason)
        except _DOMAIN_ERRORS as exc:
            raise self._fail("void_payment", exc) from exc
        return dict(PaymentSerializer(payment).data)

    def list_payments(self) -> List[Payload]:
        return list(PaymentSerializer(self._payments.list_payments(), many=True).data)

    def list_customers(self) -> List[Payload]:
        return list(
            CustomerSerializer(self._customers.list_customers(), many=True).data
        )

    def list_products(self) -> List[Payload]:
        return list(ProductSerializer(self._products.list_products(), many=True).data)