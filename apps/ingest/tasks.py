"""Celery tasks for applying extracted requests to the ledger."""

from __future__ import annotations

import logging
from typing import Any

from celery import shared_task  # type: ignore

from . import pipeline

logger = logging.getLogger(__name__)


@shared_task(name="ingest.apply_booking_request")
def apply_booking_request(
    message_id: str,
    source_type: str,
    payload: dict[str, Any],
    metadata: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """
    Apply a booking request sent by the extraction collaborator.

    Returns:
        dict: the outcome (action, reservation_id, error, skipped)
    """
    outcome = pipeline.apply_booking_request(
        message_id,
        source_type,
        pipeline.BookingRequest.from_payload(payload),
        metadata=metadata,
    )
    logger.debug(f"Booking request {message_id} -> {outcome.action}")
    return outcome.to_dict()


@shared_task(name="ingest.apply_cancellation_request")
def apply_cancellation_request(
    message_id: str,
    source_type: str,
    payload: dict[str, Any],
    metadata: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """
    Apply a cancellation notice sent by the extraction collaborator.

    Returns:
        dict: the outcome (action, reservation_id, error, skipped)
    """
    outcome = pipeline.apply_cancellation_request(
        message_id,
        source_type,
        pipeline.CancellationRequest.from_payload(payload),
        metadata=metadata,
    )
    logger.debug(f"Cancellation request {message_id} -> {outcome.action}")
    return outcome.to_dict()
