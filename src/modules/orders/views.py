"""Order endpoints used by the driver app.

Orders are created by the selling workflow; drivers only list, read and
patch them. Domain errors map to 400/404, anything else propagates.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.mixins import ListModelMixin
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import GenericViewSet

from modules.core.responses import error_response, invalid_payload, request_actor
from modules.orders.dtos import UpdateOrderDTO
from modules.orders.exceptions import (
    InvalidOrderUpdate,
    OrderNotFound,
    UnverifiedPayment,
)
from modules.orders.filters import OrderFilter
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.serializers import OrderDetailSerializer, OrderSerializer
from modules.orders.services import OrderService
from modules.payments.repositories.django_repository import PaymentDjangoRepository

_ORDER_NOT_FOUND = "Order not found."


class OrderViewSet(ListModelMixin, GenericViewSet):
    queryset = Order.objects.all()
    serializer_class = OrderSerializer
    filterset_class = OrderFilter
    search_fields = ["customer__name", "delivery_address", "notes"]
    ordering_fields = ["id", "created_at", "total", "status", "delivery_start_time"]
    ordering = ["-created_at", "-id"]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = OrderService(
            order_repository=OrderDjangoRepository(),
            payment_repository=PaymentDjangoRepository(),
        )

    def get_throttles(self) -> list[BaseThrottle]:
        # Reads are polled every 30s by each driver; writes use the user rate.
        reading = self.action in {"list", "retrieve"}
        self.throttle_scope = "order_listing" if reading else None
        return super().get_throttles()

    def get_queryset(self):
        return OrderDjangoRepository().queryset()

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        try:
            order = self._service.get_order(pk)
        except OrderNotFound:
            return error_response(_ORDER_NOT_FOUND, status.HTTP_404_NOT_FOUND)
        return Response(OrderDetailSerializer(order).data)

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/orders/{pk}/

        Claim, release, start and complete all go through here. Unknown
        fields are rejected; ``is_paid=true`` needs a verified ``payment_id``.
        """
        try:
            dto = UpdateOrderDTO.model_validate(request.data)
        except PydanticValidationError as exc:
            return invalid_payload(exc)

        try:
            order = self._service.update_order(
                order_id=pk, dto=dto, changed_by=request_actor(request)
            )
        except OrderNotFound:
            return error_response(_ORDER_NOT_FOUND, status.HTTP_404_NOT_FOUND)
        except (InvalidOrderUpdate, UnverifiedPayment) as exc:
            return error_response(str(exc), status.HTTP_400_BAD_REQUEST)

        return Response(OrderDetailSerializer(order).data)

    def update(self, request: Request, pk: str | None = None) -> Response:
        # PUT behaves like PATCH; drivers never replace a whole order.
        return self.partial_update(request, pk=pk)
