"""Django ORM implementation of the Order repository.

Satisfies ``IOrderRepository`` using Django's QuerySet API.
Domain events collected on the aggregate are published on the
in-memory bus once the surrounding transaction commits.

Concurrency control on partial updates uses ``select_for_update()``;
between drivers the last committed write wins.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from django.db import transaction

from modules.core.repositories.interfaces import EntityId
from modules.orders.models import Order
from modules.orders.repositories.interfaces import IOrderRepository
from shared.infrastructure.bus import event_bus

logger = structlog.get_logger(__name__)


def _as_pk(value: EntityId) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    def queryset(self):
        """Live orders with eager-loaded relations.

        ``select_related`` for the customer FK (single JOIN) and
        ``prefetch_related`` for items and items→product.  Prevents N+1.
        """
        return (
            Order.objects.alive()
            .select_related("customer")
            .prefetch_related("items__product")
        )

    def get_by_id(self, id: EntityId) -> Optional[Order]:
        """Retrieve an order with eager-loaded relations.

        Returns ``None`` for non-existent or non-numeric IDs.
        """
        pk = _as_pk(id)
        if pk is None:
            return None
        return self.queryset().prefetch_related("status_history").filter(pk=pk).first()

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Order]:
        """List orders with optional Django ORM look-ups.

        Examples of valid filters::

            {"delivery_option": "delivery"}
            {"assigned_driver": "Ali", "is_paid": False}
        """
        queryset = self.queryset()
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    def get_for_update(self, id: EntityId) -> Optional[Order]:
        """Retrieve an order with a row-level lock (SELECT FOR UPDATE).

        Must be called inside ``transaction.atomic``.
        """
        pk = _as_pk(id)
        if pk is None:
            return None
        return Order.objects.alive().select_for_update().filter(pk=pk).first()

    @transaction.atomic
    def save(self, entity: Order) -> Order:
        """Persist (create or update) an order and dispatch its events."""
        entity.save()

        events = entity.domain_events
        event_bus.publish_on_commit(events)
        entity.clear_domain_events()

        logger.info("order.saved", order_id=entity.pk, event_count=len(events))
        return entity
