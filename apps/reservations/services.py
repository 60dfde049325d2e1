"""Bay allocation and reservation ledger services."""

from __future__ import annotations

import logging
import random
import re
import time
from dataclasses import dataclass
from datetime import date as date_type
from typing import Any, Iterable, TYPE_CHECKING

from django.conf import settings  # type: ignore
from django.db import IntegrityError, transaction  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.dateparse import parse_date  # type: ignore

from apps.customers.utils import clean_text
from shared.domain.exceptions import (
    AmbiguousMatch,
    CodeCollision,
    InvalidArgument,
    InvalidTime,
    NoCapacity,
    NotFound,
)
from shared.domain.value_objects import TimeSlot, round_duration
from shared.infrastructure.db import check_max_length, is_violation_of, lock_queryset_if_possible

from .constants import ALL_UNITS, MULTI_SEAT_CAPACITY, OVERLAP_CONSTRAINT, UNIT_CAPACITY, unit_preferences
from .models import Reservation

if TYPE_CHECKING:  # pragma: no cover - type checking only
    from apps.customers.models import Customer

logger = logging.getLogger(__name__)

_TWELVE_HOUR_RE = re.compile(r"(\d{1,2}):(\d{2})\s*([AP]M)", re.IGNORECASE)
_TWENTY_FOUR_HOUR_RE = re.compile(r"(\d{1,2}):(\d{2})")

_PRIMARY_KEY_MARKERS = (
    f"{Reservation._meta.db_table}_pkey",
    f"{Reservation._meta.db_table}.id",
)


def parse_time_to_standard(value: str | None) -> str:
    """Convert ``h:mm AM/PM`` or ``HH:mm`` to canonical ``HH:mm``."""

    cleaned = str(value or "").strip()

    match = _TWELVE_HOUR_RE.fullmatch(cleaned)
    if match:
        hours, minutes, period = int(match.group(1)), int(match.group(2)), match.group(3).upper()
        if not 1 <= hours <= 12 or minutes > 59:
            raise InvalidTime(f"Invalid 12-hour time: {value!r}")
        if period == "PM" and hours != 12:
            hours += 12
        elif period == "AM" and hours == 12:
            hours = 0
        return f"{hours:02d}:{minutes:02d}"

    match = _TWENTY_FOUR_HOUR_RE.fullmatch(cleaned)
    if not match:
        raise InvalidTime(f"Invalid time format: {value!r}")
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23:
        raise InvalidTime(f"Invalid hour value: {hours}")
    if minutes > 59:
        raise InvalidTime(f"Invalid minute value: {minutes}")
    return f"{hours:02d}:{minutes:02d}"


def _to_slot(start_time: str, duration: Any) -> TimeSlot:
    return TimeSlot.from_start(parse_time_to_standard(start_time), duration)


def _to_date(value: date_type | str | None) -> date_type:
    if isinstance(value, date_type):
        return value
    try:
        parsed = parse_date(str(value or ""))
    except ValueError:
        parsed = None
    if parsed is None:
        raise InvalidArgument(f"Invalid date, expected YYYY-MM-DD: {value!r}")
    return parsed


def calculate_end_time(start_time: str, duration: Any) -> str:
    """End of the slot as ``HH:mm``, wrapping past midnight."""

    return _to_slot(start_time, duration).end_label


def is_unit_available(
    unit: str,
    date: date_type | str,
    start_time: str,
    duration: Any,
    exclude_id: str | None = None,
) -> bool:
    """True when no confirmed reservation on ``unit`` overlaps the slot."""

    slot = _to_slot(start_time, duration)
    overlapping = Reservation.objects.filter(
        unit=unit,
        date=_to_date(date),
        status=Reservation.Status.CONFIRMED,
        start_minute__lt=slot.end_minute,
        end_minute__gt=slot.start_minute,
    )
    if exclude_id is not None:
        overlapping = overlapping.exclude(pk=exclude_id)

    blocking = lock_queryset_if_possible(overlapping).first()
    if blocking is not None:
        logger.debug(
            f"{unit} not available on {date} for {slot}: overlaps {blocking.id} ({blocking.slot})"
        )
        return False
    return True


def assign_unit(
    party_size: int,
    date: date_type | str,
    start_time: str,
    duration: Any,
    exclude_units: Iterable[str] = (),
) -> str | None:
    """First free unit in the party size's preference order, or ``None``."""

    if party_size < 1:
        raise InvalidArgument(f"Party size must be positive: {party_size}")

    preferences = unit_preferences(party_size)
    if not preferences:
        logger.warning(f"Party size {party_size} exceeds maximum capacity {MULTI_SEAT_CAPACITY}")
        return None

    excluded = set(exclude_units)
    for unit in preferences:
        if unit in excluded:
            continue
        if is_unit_available(unit, date, start_time, duration):
            logger.debug(f"Assigned {unit} to party of {party_size} on {date} at {start_time}")
            return unit

    logger.warning(f"No units available for party of {party_size} on {date} at {start_time}")
    return None


def generate_reservation_id(date: date_type | str) -> str:
    """Next ``BKyymmddNNN`` id for the date.

    Advisory only: the primary key constraint is the real guarantee and
    ``create_reservation`` rescans on collision.
    """

    day = _to_date(date)
    prefix = f"{settings.RESERVATION_ID_PREFIX}{day:%y%m%d}"

    highest = 0
    for existing in Reservation.objects.filter(pk__startswith=prefix).values_list("pk", flat=True):
        suffix = existing[len(prefix):]
        if suffix.isdigit():
            highest = max(highest, int(suffix))

    reservation_id = f"{prefix}{highest + 1:03d}"
    logger.debug(f"Generated reservation id {reservation_id}")
    return reservation_id


@dataclass(frozen=True)
class Availability:
    available: bool
    unit: str | None


def check_availability(date: date_type | str, start_time: str, duration: Any, party_size: int) -> Availability:
    unit = assign_unit(party_size, date, parse_time_to_standard(start_time), duration)
    return Availability(available=unit is not None, unit=unit)


@dataclass
class ReservationRequest:
    """Fields needed to book a bay."""

    name: str | None
    date: date_type | str | None
    start_time: str | None
    duration: Any
    party_size: int | None
    phone: str | None = None
    email: str | None = None
    unit: str | None = None
    customer: "Customer | None" = None
    source_channel: str | None = None
    external_key: str | None = None
    notes: str = ""


def placeholder_phone() -> str:
    """A visibly fake phone: the placeholder prefix, today's MMDD and four random digits."""

    today = timezone.localdate()
    return f"{settings.PLACEHOLDER_PHONE_PREFIX}{today:%m%d}{random.randint(0, 9999):04d}"


def _insert_reservation(**fields: Any) -> Reservation:
    with transaction.atomic():
        return Reservation.objects.create(**fields)


def create_reservation(request: ReservationRequest) -> Reservation:
    """Allocate a unit and record a confirmed reservation.

    The unit is auto-assigned unless ``request.unit`` names one, in which
    case that unit must be free. Raises ``NoCapacity`` when nothing fits.
    """

    name = clean_text(request.name)
    phone = clean_text(request.phone)
    email = clean_text(request.email)

    missing = [
        field
        for field, value in (
            ("name", name),
            ("phone or email", phone or email),
            ("date", request.date),
            ("start_time", request.start_time),
            ("duration", request.duration),
            ("party_size", request.party_size),
        )
        if not value
    ]
    if missing:
        raise InvalidArgument(f"Missing required reservation fields: {', '.join(missing)}")

    day = _to_date(request.date)
    start_time = parse_time_to_standard(request.start_time)
    duration = round_duration(request.duration)
    TimeSlot.from_start(start_time, duration)
    try:
        party_size = int(request.party_size)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        raise InvalidArgument(f"Invalid party size: {request.party_size!r}")
    if party_size < 1:
        raise InvalidArgument(f"Party size must be positive: {party_size}")

    explicit_unit = clean_text(request.unit)
    if explicit_unit is not None:
        if explicit_unit not in ALL_UNITS:
            raise InvalidArgument(f"Unknown unit: {explicit_unit!r}")
        if party_size > UNIT_CAPACITY[explicit_unit]:
            raise NoCapacity(f"{explicit_unit} cannot seat {party_size} people")

    if not phone:
        phone = placeholder_phone()
        logger.info(f"Generated placeholder phone {phone} for {name}")

    channel = clean_text(request.source_channel) or settings.DEFAULT_SOURCE_CHANNEL
    external_key = clean_text(request.external_key)
    check_max_length(
        Reservation,
        name=name,
        phone_number=phone,
        email=email,
        source_channel=channel,
        external_key=external_key,
    )
    max_attempts = settings.RESERVATION_MAX_ATTEMPTS
    excluded: set[str] = set()
    failure: Exception = CodeCollision(
        f"Failed to generate a unique reservation id after {max_attempts} attempts"
    )

    for attempt in range(1, max_attempts + 1):
        if explicit_unit is not None:
            unit = explicit_unit
            if not is_unit_available(unit, day, start_time, duration):
                raise NoCapacity(f"{unit} is not available on {day} at {start_time}")
        else:
            unit = assign_unit(party_size, day, start_time, duration, exclude_units=excluded)
            if unit is None:
                raise NoCapacity(f"No unit available for party of {party_size} on {day} at {start_time}")

        reservation_id = generate_reservation_id(day)
        try:
            reservation = _insert_reservation(
                id=reservation_id,
                customer=request.customer,
                name=name,
                phone_number=phone,
                email=email or "",
                date=day,
                start_time=start_time,
                duration=duration,
                number_of_people=party_size,
                unit=unit,
                status=Reservation.Status.CONFIRMED,
                source_channel=channel,
                external_key=external_key,
                notes=request.notes or "",
            )
        except IntegrityError as exc:
            if is_violation_of(exc, OVERLAP_CONSTRAINT):
                logger.warning(f"{unit} was taken concurrently on {day} at {start_time} (attempt {attempt})")
                if explicit_unit is not None:
                    raise NoCapacity(f"{unit} is not available on {day} at {start_time}") from exc
                excluded.add(unit)
                failure = NoCapacity(f"No unit available for party of {party_size} on {day} at {start_time}")
                continue
            if not is_violation_of(exc, *_PRIMARY_KEY_MARKERS):
                raise
            logger.warning(f"Reservation id collision on {reservation_id} (attempt {attempt}/{max_attempts})")
            failure = CodeCollision(
                f"Failed to generate a unique reservation id after {max_attempts} attempts"
            )
            if attempt < max_attempts:
                time.sleep(random.uniform(0, settings.RETRY_BACKOFF_MAX_SECONDS))
            continue

        logger.info(
            f"Reservation {reservation.id} created for {reservation.name}: "
            f"{reservation.unit} on {reservation.date} at {reservation.start_time}"
        )
        return reservation

    logger.error(f"Giving up on reservation for {name} after {max_attempts} attempts: {failure}")
    raise failure


def cancel_reservation(reservation_id: str, reason: str, cancelled_by: str | None = None) -> Reservation:
    """Move a confirmed reservation to cancelled. Rows are never deleted."""

    with transaction.atomic():
        queryset = Reservation.objects.filter(pk=reservation_id, status=Reservation.Status.CONFIRMED)
        reservation = lock_queryset_if_possible(queryset).first()
        if reservation is None:
            raise NotFound(f"No confirmed reservation {reservation_id}")
        reservation.mark_cancelled(reason, cancelled_by or settings.DEFAULT_SOURCE_CHANNEL)

    logger.info(f"Reservation {reservation.id} cancelled by {reservation.cancelled_by}: {reason}")
    return reservation


def find_by_external_key(external_key: str | None) -> Reservation | None:
    """Most recent confirmed reservation carrying the external key."""

    external_key = clean_text(external_key)
    if not external_key:
        return None
    return (
        Reservation.objects.filter(external_key=external_key, status=Reservation.Status.CONFIRMED)
        .order_by("-created_at", "-pk")
        .first()
    )


def _detail_matches(reservation: Reservation, name: str | None, phone: str | None, email: str | None) -> bool:
    if phone and phone in reservation.phone_number:
        return True
    if email and reservation.email and reservation.email.lower() == email.lower():
        return True
    return bool(name and name.lower() in reservation.name.lower())


def _single_match(matches: list[Reservation], description: str) -> Reservation | None:
    if len(matches) > 1:
        raise AmbiguousMatch(f"{len(matches)} reservations match {description}", candidates=matches)
    return matches[0] if matches else None


def find_by_details(
    name: str | None,
    phone: str | None,
    email: str | None,
    date: date_type | str,
    start_time: str,
    source_channel: str | None = None,
) -> Reservation | None:
    """The single confirmed reservation at that date and time matching the contact details.

    Zero or several matches give ``None``; ambiguity is logged for review.
    """

    name, phone, email = clean_text(name), clean_text(phone), clean_text(email)
    day = _to_date(date)
    start = parse_time_to_standard(start_time)

    queryset = Reservation.objects.filter(
        status=Reservation.Status.CONFIRMED,
        date=day,
        start_time=start,
    )
    if source_channel:
        queryset = queryset.filter(source_channel=source_channel)

    matches = [reservation for reservation in queryset if _detail_matches(reservation, name, phone, email)]
    try:
        return _single_match(matches, f"{name or phone or email!r} on {day} at {start}")
    except AmbiguousMatch as exc:
        ids = ", ".join(r.id for r in exc.candidates)
        logger.warning(f"Ambiguous reservation lookup: {exc} ({ids})")
        return None
