"""
Domain building blocks

- ValueObject: frozen dataclass compared by value (DateRange)
- EventRecorder: mixin for Django models acting as aggregate roots
  (Reservation, Invoice)
- DomainEvent: record of a committed change, delivered through the message bus
"""

from abc import ABC
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List
from uuid import UUID, uuid4


@dataclass(frozen=True)
class ValueObject(ABC):
    """Immutable, identity-less value; equality compares every field."""


class EventRecorder:
    """
    Records domain events on an aggregate until a unit of work collects them

    The list is created lazily because Django builds model instances
    without calling a cooperative __init__ chain; it is never persisted.
    """

    def _pending_events(self) -> List['DomainEvent']:
        try:
            return self._recorded_events
        except AttributeError:
            self._recorded_events = []
            return self._recorded_events

    def add_event(self, event: 'DomainEvent'):
        self._pending_events().append(event)

    def clear_events(self):
        self._pending_events().clear()

    @property
    def events(self) -> List['DomainEvent']:
        """Snapshot of the events recorded so far"""
        return list(self._pending_events())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(kw_only=True)
class DomainEvent:
    """
    Something that happened to an aggregate

    ``aggregate_id`` is the primary key of the reservation or invoice the
    event belongs to. Subclasses add their own fields and extend to_dict().
    """
    event_id: UUID = field(default_factory=uuid4)
    occurred_at: datetime = field(default_factory=_utcnow)
    aggregate_id: int | None = None

    def to_dict(self) -> dict:
        return {
            'event_id': str(self.event_id),
            'event_type': type(self).__name__,
            'occurred_at': self.occurred_at.isoformat(),
            'aggregate_id': self.aggregate_id,
        }
