"""Unit tests for PaymentService with mocked repositories."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from pydantic import ValidationError

from modules.orders.models import Order
from modules.payments.dtos import CreatePaymentDTO
from modules.payments.events import PaymentCollected, PaymentVoided
from modules.payments.exceptions import (
    PaymentAlreadySettled,
    PaymentNotFound,
    PaymentOrderNotFound,
)
from modules.payments.models import Payment
from modules.payments.services import PaymentService

pytestmark = pytest.mark.unit

COLLECTED_AT = datetime(2024, 5, 14, 12, 30, tzinfo=timezone.utc)


def _call_create_payment(service: PaymentService, dto: CreatePaymentDTO):
    return PaymentService.create_payment.__wrapped__(service, dto)


def _call_void_payment(service: PaymentService, payment_id, reason=""):
    return PaymentService.void_payment.__wrapped__(service, payment_id, reason)


def _assign_pk(payment: Payment) -> Payment:
    if payment.pk is None:
        payment.pk = 7
    return payment


@pytest.fixture()
def service_and_repos():
    payment_repo = MagicMock()
    order_repo = MagicMock()
    payment_repo.save.side_effect = _assign_pk
    service = PaymentService(payment_repo, order_repo)
    return service, payment_repo, order_repo


@pytest.fixture()
def order(service_and_repos):
    _, _, order_repo = service_and_repos
    order = Order(pk=42, delivery_option="delivery", total=Decimal("150.00"))
    order_repo.get_by_id.return_value = order
    return order


class TestCreatePayment:
    def test_records_cash_payment(self, service_and_repos, order):
        service, payment_repo, order_repo = service_and_repos
        dto = CreatePaymentDTO(
            order_id=42,
            amount=Decimal("150"),
            collected_by="Ali",
            collected_at=COLLECTED_AT,
            customer_name="Ahmed Al-Harbi",
        )

        payment = _call_create_payment(service, dto)

        order_repo.get_by_id.assert_called_once_with(42)
        assert payment.pk == 7
        assert payment.order_id == 42
        assert payment.amount == Decimal("150.00")
        assert payment.method == "cash"
        assert payment.status == "completed"
        assert payment.collected_at == COLLECTED_AT
        assert payment.customer_name == "Ahmed Al-Harbi"
        assert payment.order_total == Decimal("150.00")

        [event] = payment.domain_events
        assert isinstance(event, PaymentCollected)
        assert event.order_id == 42
        assert event.amount == Decimal("150.00")

    def test_timestamps_default_to_now(self, service_and_repos, order):
        service, _, _ = service_and_repos
        payment = _call_create_payment(
            service, CreatePaymentDTO(order_id=42, amount=Decimal("150"), collected_by="Ali")
        )
        assert payment.collected_at is not None
        assert payment.paid_at == payment.collected_at

    def test_mismatched_amount_is_still_recorded(self, service_and_repos, order):
        service, payment_repo, _ = service_and_repos
        payment = _call_create_payment(
            service, CreatePaymentDTO(order_id=42, amount=Decimal("140"), collected_by="Ali")
        )
        assert payment.amount == Decimal("140.00")
        assert payment_repo.save.called

    def test_unknown_order_raises(self, service_and_repos):
        service, payment_repo, order_repo = service_and_repos
        order_repo.get_by_id.return_value = None

        with pytest.raises(PaymentOrderNotFound):
            _call_create_payment(
                service, CreatePaymentDTO(order_id=999, amount=Decimal("1"), collected_by="Ali")
            )

        payment_repo.save.assert_not_called()


class TestVoidPayment:
    @pytest.fixture()
    def payment(self, service_and_repos, order):
        _, payment_repo, _ = service_and_repos
        payment = Payment(pk=7, order_id=42, amount=Decimal("150.00"), collected_by="Ali")
        payment_repo.get_for_update.return_value = payment
        return payment

    def test_voids_orphaned_payment(self, service_and_repos, payment):
        service, payment_repo, _ = service_and_repos

        result = _call_void_payment(service, 7, reason="order update failed")

        assert result is payment
        assert payment.status == "voided"
        assert payment.voided_at is not None
        assert payment.void_reason == "order update failed"
        assert isinstance(payment.domain_events[-1], PaymentVoided)
        payment_repo.save.assert_called_once_with(payment)

    def test_void_is_idempotent(self, service_and_repos, payment):
        service, payment_repo, _ = service_and_repos
        payment.status = "voided"

        assert _call_void_payment(service, 7) is payment
        payment_repo.save.assert_not_called()

    def test_settled_payment_cannot_be_voided(self, service_and_repos, payment, order):
        service, payment_repo, _ = service_and_repos
        order.is_paid = True
        order.payment_id = 7

        with pytest.raises(PaymentAlreadySettled):
            _call_void_payment(service, 7)

        assert payment.status == "completed"
        payment_repo.save.assert_not_called()

    def test_missing_payment_raises(self, service_and_repos):
        service, payment_repo, _ = service_and_repos
        payment_repo.get_for_update.return_value = None

        with pytest.raises(PaymentNotFound):
            _call_void_payment(service, 404)


class TestCreatePaymentDTO:
    @pytest.mark.parametrize("amount", ["0", "-5"])
    def test_amount_must_be_positive(self, amount):
        with pytest.raises(ValidationError):
            CreatePaymentDTO(order_id=42, amount=Decimal(amount), collected_by="Ali")

    def test_amount_quantized(self):
        dto = CreatePaymentDTO(order_id=42, amount=Decimal("99.5"), collected_by="Ali")
        assert str(dto.amount) == "99.50"

    def test_collector_required(self):
        with pytest.raises(ValidationError):
            CreatePaymentDTO(order_id=42, amount=Decimal("1"), collected_by="  ")

    def test_only_cash_is_accepted(self):
        with pytest.raises(ValidationError):
            CreatePaymentDTO(
                order_id=42, amount=Decimal("1"), collected_by="Ali", method="card"
            )
