"""Idempotency guard over upstream messages."""

from __future__ import annotations

import logging
from datetime import datetime, timezone as dt_timezone
from email.utils import parsedate_to_datetime
from typing import Any, Mapping

from django.db import IntegrityError, transaction  # type: ignore
from django.db.models import Count  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.dateparse import parse_datetime  # type: ignore

from shared.domain.exceptions import InvalidArgument
from shared.infrastructure.db import is_violation_of

from .models import ProcessedMessage

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 100


def _validate_source_type(source_type: str) -> None:
    if source_type not in ProcessedMessage.SourceType.values:
        raise InvalidArgument(
            f"Invalid source type: {source_type!r}. "
            f"Must be one of: {', '.join(ProcessedMessage.SourceType.values)}"
        )


def _validate_action(action: str) -> None:
    if action not in ProcessedMessage.Action.values:
        raise InvalidArgument(
            f"Invalid action: {action!r}. Must be one of: {', '.join(ProcessedMessage.Action.values)}"
        )


def parse_message_date(raw: Any) -> datetime | None:
    """Parse an RFC 2822 or ISO 8601 message date; ``None`` when unparseable."""

    if not raw:
        return None

    if isinstance(raw, datetime):
        value: datetime | None = raw
    else:
        text = str(raw).strip()
        try:
            value = parsedate_to_datetime(text)
        except (TypeError, ValueError, IndexError):
            value = None
        if value is None:
            try:
                value = parse_datetime(text)
            except ValueError:
                value = None

    if value is None:
        logger.warning(f"Failed to parse message date {raw!r}, storing null")
        return None
    if timezone.is_naive(value):
        value = timezone.make_aware(value, dt_timezone.utc)
    return value


def is_processed(message_id: str) -> bool:
    processed = ProcessedMessage.objects.filter(message_id=message_id).values("action_taken").first()
    if processed is not None:
        logger.debug(f"Message {message_id} already processed ({processed['action_taken']})")
    return processed is not None


def mark_processed(
    message_id: str,
    source_type: str,
    action: str,
    reservation_id: str | None = None,
    error_message: str | None = None,
    metadata: Mapping[str, Any] | None = None,
) -> ProcessedMessage:
    """Record the processing decision for a message.

    Idempotent: when the message was already recorded, the stored row is
    returned unchanged and the new payload is ignored.
    """

    if not message_id or not message_id.strip():
        raise InvalidArgument("message_id is required")
    _validate_source_type(source_type)
    _validate_action(action)

    metadata = metadata or {}
    try:
        with transaction.atomic():
            record = ProcessedMessage.objects.create(
                message_id=message_id,
                source_type=source_type,
                action_taken=action,
                reservation_id=reservation_id,
                error_message=error_message,
                subject=(metadata.get("subject") or "")[:500] or None,
                message_date=parse_message_date(metadata.get("date")),
            )
    except IntegrityError as exc:
        if not is_violation_of(exc, "message_id"):
            raise
        logger.warning(f"Message {message_id} already marked as processed, keeping the stored record")
        return ProcessedMessage.objects.get(message_id=message_id)

    logger.info(
        f"Message {message_id} [{source_type}] marked {action}"
        + (f" for reservation {reservation_id}" if reservation_id else "")
    )
    return record


def get_history(source_type: str | None = None, limit: int = DEFAULT_HISTORY_LIMIT) -> list[ProcessedMessage]:
    """Most recently processed messages first."""

    queryset = ProcessedMessage.objects.all()
    if source_type:
        _validate_source_type(source_type)
        queryset = queryset.filter(source_type=source_type)
    return list(queryset.order_by("-processed_at", "-pk")[:limit])


def get_stats(source_type: str | None = None) -> dict[str, Any]:
    """Counts of processed messages, overall and per action and source."""

    queryset = ProcessedMessage.objects.all()
    if source_type:
        _validate_source_type(source_type)
        queryset = queryset.filter(source_type=source_type)

    by_action = {
        row["action_taken"]: row["count"]
        for row in queryset.order_by().values("action_taken").annotate(count=Count("id"))
    }
    by_source = {
        row["source_type"]: row["count"]
        for row in queryset.order_by().values("source_type").annotate(count=Count("id"))
    }
    return {
        "total": sum(by_action.values()),
        "by_action": by_action,
        "by_source": by_source,
    }
