"""Event handlers for Payments domain events."""

from __future__ import annotations

import structlog

from modules.payments.events import PaymentCollected, PaymentVoided
from shared.domain.bus import IEventHandler

logger = structlog.get_logger(__name__)


class PaymentCollectedHandler(IEventHandler[PaymentCollected]):
    def handle(self, event: PaymentCollected) -> None:
        logger.info(
            "payment.event.collected",
            payment_id=str(event.aggregate_id),
            order_id=event.order_id,
            amount=str(event.amount),
            collected_by=event.collected_by,
        )


class PaymentVoidedHandler(IEventHandler[PaymentVoided]):
    def handle(self, event: PaymentVoided) -> None:
        logger.warning(
            "payment.event.voided",
            payment_id=str(event.aggregate_id),
            order_id=event.order_id,
            reason=event.reason,
        )


payment_collected_handler = PaymentCollectedHandler()
payment_voided_handler = PaymentVoidedHandler()
