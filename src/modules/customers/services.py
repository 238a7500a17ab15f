"""Customer service layer (read side only)."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional

import structlog

from modules.customers.exceptions import CustomerNotFound

if TYPE_CHECKING:
    from modules.core.repositories.interfaces import EntityId
    from modules.customers.models import Customer
    from modules.customers.repositories.interfaces import ICustomerRepository

logger = structlog.get_logger(__name__)


class CustomerService:
    """Application service for Customer look-ups.

    Receives an ``ICustomerRepository`` via constructor injection (DIP).
    """

    def __init__(self, repository: ICustomerRepository) -> None:
        self._repo = repository

    def list_customers(
        self, filters: Optional[Dict[str, Any]] = None
    ) -> List[Customer]:
        """Return live customers, optionally filtered."""
        return self._repo.list(filters)

    def get_customer(self, id: EntityId) -> Customer:
        """Retrieve a single customer by ID.

        Raises:
            CustomerNotFound: if the customer does not exist.
        """
        customer = self._repo.get_by_id(id)
        if not customer:
            logger.info("customer.not_found", customer_id=str(id))
            raise CustomerNotFound(f"Customer {id} not found.")
        return customer
