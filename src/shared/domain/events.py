"""Events raised by orders and payments and delivered through the event bus."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Union
from uuid import UUID, uuid4

# Orders and payments use integer keys; the client side may hand over strings.
AggregateId = Union[int, str]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class DomainEvent:
    aggregate_id: AggregateId
    event_id: UUID = field(default_factory=uuid4)
    occurred_on: datetime = field(default_factory=_utcnow)
    event_name: str = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "event_name", type(self).__name__)


class DomainEventMixin:
    """Buffers events on a model instance until its repository saves it.

    Django builds model instances without calling ``__init__`` on mixins,
    so the buffer is created on first use.
    """

    def _pending_events(self) -> list[DomainEvent]:
        try:
            return self.__dict__["_domain_events"]
        except KeyError:
            return self.__dict__.setdefault("_domain_events", [])

    def add_domain_event(self, event: DomainEvent) -> None:
        self._pending_events().append(event)

    def clear_domain_events(self) -> None:
        self._pending_events().clear()

    @property
    def domain_events(self) -> list[DomainEvent]:
        return list(self._pending_events())
