"""Payment repository interface."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Optional

from modules.core.repositories.interfaces import EntityId, IRepository

if TYPE_CHECKING:
    from modules.payments.models import Payment


class IPaymentRepository(IRepository["Payment"]):
    """Repository contract for the Payment aggregate."""

    @abstractmethod
    def get_for_update(self, id: EntityId) -> Optional[Payment]:
        """Retrieve a payment with a row-level lock (SELECT FOR UPDATE)."""
