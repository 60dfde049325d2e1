"""
Base Domain Classes

- ValueObject: Immutable objects compared by value
- DomainEvent: Events that represent something that happened
"""

from abc import ABC
from copy import deepcopy
from dataclasses import dataclass, field, fields
from datetime import datetime
from uuid import UUID, uuid4

from django.utils import timezone


@dataclass(frozen=True)
class ValueObject(ABC):
    """
    Base class for value objects

    Value objects are immutable and have no identity.
    Two value objects are equal if all their attributes are equal.
    """
    pass


@dataclass
class DomainEvent:
    """
    Base class for domain events

    Domain events represent something that happened in the ledger.
    They are handed to the message bus once the surrounding transaction
    has committed.
    """
    event_id: UUID = field(default_factory=uuid4, init=False)
    occurred_at: datetime = field(default_factory=timezone.now, init=False)

    def to_dict(self) -> dict:
        """Convert event to dictionary for serialization, payload fields included"""
        data = {
            'event_id': str(self.event_id),
            'event_type': self.__class__.__name__,
            'occurred_at': self.occurred_at.isoformat(),
        }
        for item in fields(self):
            if item.name not in ('event_id', 'occurred_at'):
                data[item.name] = deepcopy(getattr(self, item.name))
        return data
