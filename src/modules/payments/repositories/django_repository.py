"""Django ORM implementation of the Payment repository."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from django.db import transaction

from modules.core.repositories.interfaces import EntityId
from modules.payments.models import Payment
from modules.payments.repositories.interfaces import IPaymentRepository
from shared.infrastructure.bus import event_bus

logger = structlog.get_logger(__name__)


def _as_pk(value: EntityId) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


class PaymentDjangoRepository(IPaymentRepository):
    """Concrete Payment repository backed by Django ORM."""

    def queryset(self):
        return Payment.objects.select_related("order__customer")

    def get_by_id(self, id: EntityId) -> Optional[Payment]:
        pk = _as_pk(id)
        if pk is None:
            return None
        return self.queryset().filter(pk=pk).first()

    def get_for_update(self, id: EntityId) -> Optional[Payment]:
        pk = _as_pk(id)
        if pk is None:
            return None
        return Payment.objects.select_for_update().filter(pk=pk).first()

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Payment]:
        """List payments with optional Django ORM look-ups.

        Examples of valid filters::

            {"order_id": 42}
            {"collected_by": "Ali", "status": "completed"}
        """
        queryset = self.queryset()
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    @transaction.atomic
    def save(self, entity: Payment) -> Payment:
        entity.save()

        events = entity.domain_events
        event_bus.publish_on_commit(events)
        entity.clear_domain_events()

        logger.info("payment.saved", payment_id=entity.pk, event_count=len(events))
        return entity
