"""Django ORM implementation of the Customer repository.

Error handling follows the Null Object pattern: methods return ``None``
instead of raising; the service layer decides how to translate a
missing entity into an API response.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from django.db import transaction

from modules.core.repositories.interfaces import EntityId
from modules.customers.models import Customer
from modules.customers.repositories.interfaces import ICustomerRepository

logger = structlog.get_logger(__name__)


class CustomerDjangoRepository(ICustomerRepository):
    """Concrete Customer repository backed by Django ORM."""

    def get_by_id(self, id: EntityId) -> Optional[Customer]:
        """Retrieve a live customer by primary key.

        Returns ``None`` for non-existent or non-numeric IDs.
        """
        try:
            pk = int(id)
        except (TypeError, ValueError):
            return None
        return Customer.objects.alive().filter(pk=pk).first()

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Customer]:
        """List live customers with optional Django ORM look-ups.

        Examples of valid filters::

            {"is_active": True}
            {"name__icontains": "ahmed"}
        """
        queryset = Customer.objects.alive()
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    def queryset(self):
        """Unevaluated queryset for DRF filter backends."""
        return Customer.objects.alive()

    @transaction.atomic
    def save(self, entity: Customer) -> Customer:
        """Persist (create or update) a customer."""
        is_new = entity._state.adding
        entity.save()
        logger.info("customer.saved", customer_id=entity.pk, is_new=is_new)
        return entity
