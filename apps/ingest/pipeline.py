"""
Request application pipeline

Applies booking and cancellation requests, already extracted from an
upstream message, to the ledger:

1. Skip the message if it was processed before
2. Resolve the customer (booking requests only)
3. Allocate or cancel the reservation
4. Record the decision against the message id in the same transaction
5. Publish the outcome event after commit

Failures are recorded as ``error`` so the message stays visible in the
history for manual reprocessing instead of being retried forever.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field, fields
from typing import Any, Iterable, Mapping, TYPE_CHECKING

from django.conf import settings  # type: ignore

from apps.customers.services import get_or_create_customer
from apps.reservations.services import (
    ReservationRequest,
    cancel_reservation,
    create_reservation,
    find_by_details,
    find_by_external_key,
)
from shared.application.uow import DjangoUnitOfWork
from shared.domain.exceptions import InvalidArgument, LedgerError, NoCapacity, NotFound

from .events import IngestFailed, NoCapacityReported, ReservationCancelled, ReservationCreated
from .models import ProcessedMessage
from .services import is_processed, mark_processed

if TYPE_CHECKING:  # pragma: no cover - type checking only
    from apps.reservations.models import Reservation

logger = logging.getLogger(__name__)

Action = ProcessedMessage.Action
SourceType = ProcessedMessage.SourceType

SOURCE_CHANNELS = {
    SourceType.CLASSPASS: "ClassPass",
    SourceType.RESOS: "ResOS",
    SourceType.WEBSITE: "Website",
    SourceType.META_LEAD: "Meta Lead",
}

# Upstream collaborators send camelCase keys.
_PAYLOAD_ALIASES = {
    "customerName": "name",
    "startTime": "start_time",
    "durationHours": "duration",
    "duration_hours": "duration",
    "partySize": "party_size",
    "numberOfPeople": "party_size",
    "externalKey": "external_key",
    "reservationKey": "external_key",
}


def _payload_fields(cls, payload: Mapping[str, Any]) -> dict[str, Any]:
    names = {f.name for f in fields(cls)}
    data = {}
    for key, value in payload.items():
        name = _PAYLOAD_ALIASES.get(key, key)
        if name in names:
            data[name] = value
    return data


@dataclass
class BookingRequest:
    name: str | None = None
    date: str | None = None
    start_time: str | None = None
    duration: Any = None
    party_size: int | None = None
    phone: str | None = None
    email: str | None = None
    unit: str | None = None
    external_key: str | None = None
    channel: str | None = None
    notes: str = ""

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "BookingRequest":
        return cls(**_payload_fields(cls, payload))

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["duration"] = None if self.duration is None else str(self.duration)
        return data


@dataclass
class CancellationRequest:
    name: str | None = None
    date: str | None = None
    start_time: str | None = None
    phone: str | None = None
    email: str | None = None
    external_key: str | None = None
    channel: str | None = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "CancellationRequest":
        return cls(**_payload_fields(cls, payload))

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class IngestOutcome:
    message_id: str
    action: str | None
    reservation: "Reservation | None" = None
    error: str | None = None
    skipped: bool = False
    request: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "message_id": self.message_id,
            "action": self.action,
            "reservation_id": self.reservation.pk if self.reservation is not None else None,
            "error": self.error,
            "skipped": self.skipped,
        }


@dataclass
class IngestMessage:
    message_id: str
    source_type: str
    request: BookingRequest | CancellationRequest
    metadata: Mapping[str, Any] | None = None


class _ProcessedConcurrently(Exception):
    """Another worker recorded the message first; our writes must roll back."""

    def __init__(self, record: ProcessedMessage):
        super().__init__(record.message_id)
        self.record = record


def _check_message(message_id: str, source_type: str) -> None:
    if not message_id or not str(message_id).strip():
        raise InvalidArgument("message_id is required")
    if source_type not in SourceType.values:
        raise InvalidArgument(f"Invalid source type: {source_type!r}")


def _skipped(message_id: str) -> IngestOutcome:
    logger.info(f"Message {message_id} already processed, skipping")
    return IngestOutcome(message_id=message_id, action=None, skipped=True)


def _record_claim(message_id: str, source_type: str, action: str, reservation_id: str, metadata) -> None:
    record = mark_processed(message_id, source_type, action, reservation_id, metadata=metadata)
    if record.action_taken != action or record.reservation_id != reservation_id:
        raise _ProcessedConcurrently(record)


def _record_failure(
    message_id: str,
    source_type: str,
    exc: Exception,
    request: dict[str, Any],
    metadata: Mapping[str, Any] | None,
) -> IngestOutcome:
    logger.error(f"Failed to apply message {message_id} [{source_type}]: {exc}", exc_info=True)
    with DjangoUnitOfWork() as uow:
        mark_processed(message_id, source_type, Action.ERROR, error_message=str(exc), metadata=metadata)
        uow.add_event(IngestFailed(message_id=message_id, source_type=source_type, error=str(exc), request=request))
    return IngestOutcome(message_id=message_id, action=Action.ERROR, error=str(exc), request=request)


def apply_booking_request(
    message_id: str,
    source_type: str,
    request: BookingRequest,
    *,
    allow_fuzzy_name: bool | None = None,
    metadata: Mapping[str, Any] | None = None,
) -> IngestOutcome:
    """Create a reservation for a booking request at most once per message."""

    _check_message(message_id, source_type)
    if is_processed(message_id):
        return _skipped(message_id)

    if allow_fuzzy_name is None:
        allow_fuzzy_name = source_type in settings.FUZZY_NAME_SOURCES
    channel = request.channel or SOURCE_CHANNELS[source_type]
    payload = request.to_dict()

    try:
        resolved = get_or_create_customer(
            {"name": request.name, "phone": request.phone, "email": request.email},
            allow_fuzzy_name,
        )
        customer = resolved["customer"]
        logger.info(
            f"{'Created new' if resolved['is_new'] else 'Matched existing'} customer "
            f"{customer.customer_code} for message {message_id}"
        )

        with DjangoUnitOfWork() as uow:
            reservation = create_reservation(
                ReservationRequest(
                    name=request.name or customer.customer_name,
                    phone=request.phone or customer.contact_number,
                    email=request.email or customer.email,
                    date=request.date,
                    start_time=request.start_time,
                    duration=request.duration,
                    party_size=request.party_size,
                    unit=request.unit,
                    customer=customer,
                    source_channel=channel,
                    external_key=request.external_key,
                    notes=request.notes,
                )
            )
            _record_claim(message_id, source_type, Action.RESERVATION_CREATED, reservation.pk, metadata)
            uow.add_event(
                ReservationCreated(
                    message_id=message_id,
                    source_type=source_type,
                    reservation_id=reservation.pk,
                    customer_code=customer.customer_code,
                    unit=reservation.unit,
                    date=reservation.date.isoformat(),
                    start_time=reservation.start_time,
                )
            )
    except _ProcessedConcurrently:
        return _skipped(message_id)
    except NoCapacity as exc:
        logger.warning(f"No capacity for message {message_id} [{source_type}]: {exc}")
        with DjangoUnitOfWork() as uow:
            mark_processed(message_id, source_type, Action.NO_CAPACITY, metadata=metadata)
            uow.add_event(NoCapacityReported(message_id=message_id, source_type=source_type, request=payload))
        return IngestOutcome(message_id=message_id, action=Action.NO_CAPACITY, error=str(exc), request=payload)
    except LedgerError as exc:
        return _record_failure(message_id, source_type, exc, payload, metadata)
    except Exception as exc:
        _record_failure(message_id, source_type, exc, payload, metadata)
        raise

    return IngestOutcome(
        message_id=message_id,
        action=Action.RESERVATION_CREATED,
        reservation=reservation,
        request=payload,
    )


def apply_cancellation_request(
    message_id: str,
    source_type: str,
    request: CancellationRequest,
    *,
    metadata: Mapping[str, Any] | None = None,
) -> IngestOutcome:
    """Cancel the reservation a cancellation notice refers to, at most once per message.

    The reservation is looked up by external key first, then by contact
    details at the given date and time across all channels.
    """

    _check_message(message_id, source_type)
    if is_processed(message_id):
        return _skipped(message_id)

    channel = request.channel or SOURCE_CHANNELS[source_type]
    payload = request.to_dict()

    try:
        with DjangoUnitOfWork() as uow:
            reservation = find_by_external_key(request.external_key) if request.external_key else None
            if reservation is None and request.date and request.start_time:
                reservation = find_by_details(
                    request.name,
                    request.phone,
                    request.email,
                    request.date,
                    request.start_time,
                )
            if reservation is None:
                raise NotFound("No matching reservation found for cancellation")

            reason = f"Customer cancelled via {channel}"
            reservation = cancel_reservation(reservation.pk, reason, settings.DEFAULT_SOURCE_CHANNEL)
            _record_claim(message_id, source_type, Action.RESERVATION_CANCELLED, reservation.pk, metadata)
            uow.add_event(
                ReservationCancelled(
                    message_id=message_id,
                    source_type=source_type,
                    reservation_id=reservation.pk,
                    reason=reason,
                    cancelled_by=reservation.cancelled_by,
                )
            )
    except _ProcessedConcurrently:
        return _skipped(message_id)
    except LedgerError as exc:
        return _record_failure(message_id, source_type, exc, payload, metadata)
    except Exception as exc:
        _record_failure(message_id, source_type, exc, payload, metadata)
        raise

    return IngestOutcome(
        message_id=message_id,
        action=Action.RESERVATION_CANCELLED,
        reservation=reservation,
        request=payload,
    )


def apply_message(message: IngestMessage) -> IngestOutcome:
    if isinstance(message.request, CancellationRequest):
        return apply_cancellation_request(
            message.message_id,
            message.source_type,
            message.request,
            metadata=message.metadata,
        )
    return apply_booking_request(
        message.message_id,
        message.source_type,
        message.request,
        metadata=message.metadata,
    )


def apply_batch(messages: Iterable[IngestMessage]) -> list[IngestOutcome]:
    """Apply messages in order; one message failing never stops the rest."""

    outcomes = []
    for message in messages:
        try:
            outcomes.append(apply_message(message))
        except Exception as exc:
            logger.error(f"Error applying message {message.message_id}: {exc}", exc_info=True)
            outcomes.append(IngestOutcome(message_id=message.message_id, action=Action.ERROR, error=str(exc)))

    created = sum(1 for outcome in outcomes if outcome.action == Action.RESERVATION_CREATED)
    logger.info(f"Applied {len(outcomes)} messages, {created} reservations created")
    return outcomes
