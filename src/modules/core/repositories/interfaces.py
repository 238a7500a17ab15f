"""Repository contract shared by every module.

Services talk to these interfaces; only ``django_repository.py`` modules
touch the ORM, so service tests can pass a ``MagicMock`` instead.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Generic, List, Optional, TypeVar, Union

T = TypeVar("T")

# Ids come from URLs and JSON bodies, and from "Customer #7" style labels.
EntityId = Union[int, str]


class IRepository(ABC, Generic[T]):
    @abstractmethod
    def get_by_id(self, id: EntityId) -> Optional[T]:
        """Return the live entity, or ``None`` when missing or malformed."""

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[T]:
        """Live entities matching ORM-style ``filters``."""

    @abstractmethod
    def save(self, entity: T) -> T:
        """Create or update ``entity``."""
