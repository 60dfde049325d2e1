"""
Ingest Events

Outcomes of applying an upstream message to the ledger. They are published
after the recording transaction commits, for the notification collaborator
and for logging.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from shared.domain.base import DomainEvent


@dataclass
class ReservationCreated(DomainEvent):
    """
    Event: A reservation was created from an upstream booking request

    Triggers:
    - Notify staff of the new booking
    """
    message_id: str
    source_type: str
    reservation_id: str
    customer_code: Optional[str]
    unit: str
    date: str
    start_time: str


@dataclass
class ReservationCancelled(DomainEvent):
    """Event: A reservation was cancelled from an upstream cancellation notice"""
    message_id: str
    source_type: str
    reservation_id: str
    reason: str
    cancelled_by: str


@dataclass
class NoCapacityReported(DomainEvent):
    """
    Event: No unit was free for a booking request

    The original request is echoed so staff can contact the customer.
    """
    message_id: str
    source_type: str
    request: Dict[str, Any] = field(default_factory=dict)


@dataclass
class IngestFailed(DomainEvent):
    """Event: Applying a message failed and was recorded as ``error``"""
    message_id: str
    source_type: str
    error: str
    request: Dict[str, Any] = field(default_factory=dict)
