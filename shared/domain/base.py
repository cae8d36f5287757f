"""
Base Domain Classes

Building blocks shared by the domain packages:
- ValueObject: Immutable objects compared by value
- Aggregate: Consistency boundary that records domain events
- DomainEvent: Something that happened and is published after commit
"""

from abc import ABC
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List
from uuid import UUID, uuid4


@dataclass(frozen=True)
class ValueObject(ABC):
    """
    Base class for value objects

    Value objects are immutable and have no identity.
    Two value objects are equal if all their attributes are equal.
    """
    pass


@dataclass
class Aggregate(ABC):
    """
    Base class for aggregate roots

    Aggregates collect domain events while they change. The unit of work
    drains them and publishes them once the transaction has committed.
    """
    _events: List['DomainEvent'] = field(default_factory=list, repr=False, init=False, compare=False)

    def add_event(self, event: 'DomainEvent'):
        self._events.append(event)

    def clear_events(self):
        self._events.clear()

    @property
    def events(self) -> List['DomainEvent']:
        """Get copy of collected events"""
        return self._events.copy()


@dataclass
class DomainEvent:
    """Base class for domain events"""
    event_id: UUID = field(default_factory=uuid4, init=False)
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc), init=False)

    def to_dict(self) -> dict:
        return {
            'event_id': str(self.event_id),
            'event_type': self.__class__.__name__,
            'occurred_at': self.occurred_at.isoformat(),
        }
