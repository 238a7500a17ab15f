"""Customer repository interface."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.customers.models import Customer


class ICustomerRepository(IRepository["Customer"]):
    """Repository contract for the Customer reference table."""

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Customer]:
        """List live customers with optional filters."""
