"""Default subscribers for ingest events."""

from __future__ import annotations

import logging

from shared.application.message_bus import message_bus

from .events import IngestFailed, NoCapacityReported, ReservationCancelled, ReservationCreated

logger = logging.getLogger(__name__)


def log_reservation_created(event: ReservationCreated) -> None:
    logger.info(
        f"[{event.source_type}] reservation {event.reservation_id} on {event.unit} "
        f"{event.date} {event.start_time} from message {event.message_id}"
    )


def log_reservation_cancelled(event: ReservationCancelled) -> None:
    logger.info(
        f"[{event.source_type}] reservation {event.reservation_id} cancelled by "
        f"{event.cancelled_by}: {event.reason}"
    )


def log_no_capacity(event: NoCapacityReported) -> None:
    logger.warning(f"[{event.source_type}] no capacity for message {event.message_id}: {event.request}")


def log_ingest_failed(event: IngestFailed) -> None:
    logger.error(f"[{event.source_type}] message {event.message_id} failed: {event.error}")


def register_handlers() -> None:
    message_bus.register_event_handler(ReservationCreated, log_reservation_created)
    message_bus.register_event_handler(ReservationCancelled, log_reservation_cancelled)
    message_bus.register_event_handler(NoCapacityReported, log_no_capacity)
    message_bus.register_event_handler(IngestFailed, log_ingest_failed)
