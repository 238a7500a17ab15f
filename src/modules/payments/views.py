"""Payment API views.

Payments are created by drivers at the door and voided only to
compensate an order completion that failed afterwards.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.mixins import ListModelMixin
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import GenericViewSet

from modules.core.responses import error_response, invalid_payload
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.payments.dtos import CreatePaymentDTO, VoidPaymentDTO
from modules.payments.exceptions import (
    PaymentAlreadySettled,
    PaymentNotFound,
    PaymentOrderNotFound,
)
from modules.payments.filters import PaymentFilter
from modules.payments.models import Payment
from modules.payments.repositories.django_repository import PaymentDjangoRepository
from modules.payments.serializers import PaymentSerializer
from modules.payments.services import PaymentService

_PAYMENT_NOT_FOUND = "Payment not found."


class PaymentViewSet(ListModelMixin, GenericViewSet):
    """ViewSet for Payment operations.

    Uses ``PaymentService`` with injected repositories (DIP).
    """

    queryset = Payment.objects.all()
    serializer_class = PaymentSerializer
    filterset_class = PaymentFilter
    search_fields = ["customer_name", "collected_by"]
    ordering_fields = ["collected_at", "amount", "id"]
    ordering = ["-collected_at", "-id"]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = PaymentService(
            payment_repository=PaymentDjangoRepository(),
            order_repository=OrderDjangoRepository(),
        )

    def get_throttles(self) -> list[BaseThrottle]:
        self.throttle_scope = "payment_creation" if self.action == "create" else None
        return super().get_throttles()

    def get_queryset(self):
        return PaymentDjangoRepository().queryset()

    def create(self, request: Request) -> Response:
        try:
            dto = CreatePaymentDTO.model_validate(request.data)
        except PydanticValidationError as exc:
            return invalid_payload(exc)

        try:
            payment = self._service.create_payment(dto)
        except PaymentOrderNotFound:
            return error_response("Order not found.", status.HTTP_404_NOT_FOUND)

        return Response(PaymentSerializer(payment).data, status=status.HTTP_201_CREATED)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        try:
            payment = self._service.get_payment(pk)
        except PaymentNotFound:
            return error_response(_PAYMENT_NOT_FOUND, status.HTTP_404_NOT_FOUND)
        return Response(PaymentSerializer(payment).data)

    @action(detail=True, methods=["post"])
    def void(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/payments/{pk}/void/

        Idempotent; 409 once the payment settles its order.
        """
        try:
            dto = VoidPaymentDTO.model_validate(request.data or {})
        except PydanticValidationError as exc:
            return invalid_payload(exc)

        try:
            payment = self._service.void_payment(pk, reason=dto.reason)
        except PaymentNotFound:
            return error_response(_PAYMENT_NOT_FOUND, status.HTTP_404_NOT_FOUND)
        except PaymentAlreadySettled as exc:
            return error_response(str(exc), status.HTTP_409_CONFLICT)

        return Response(PaymentSerializer(payment).data)
