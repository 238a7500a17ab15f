"""Order repository interface.

Extends ``IRepository[Order]`` with the look-ups required by the
delivery workflow: a locked read for partial updates and an
unevaluated queryset for the API filter backends.

The Service Layer depends exclusively on this contract (DIP).
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from modules.core.repositories.interfaces import EntityId, IRepository

if TYPE_CHECKING:
    from modules.orders.models import Order


class IOrderRepository(IRepository["Order"]):
    """Repository contract for the Order aggregate root.

    The Order aggregate includes OrderItem children and
    OrderStatusHistory records.
    """

    @abstractmethod
    def get_by_id(self, id: EntityId) -> Optional[Order]:
        """Retrieve an order with prefetched items and status history."""

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Order]:
        """List orders with optional filters."""

    @abstractmethod
    def get_for_update(self, id: EntityId) -> Optional[Order]:
        """Retrieve an order with a row-level lock (SELECT FOR UPDATE)."""
