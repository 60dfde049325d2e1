"""
Common Value Objects

- TimeSlot: a half-open [start, end) interval of minutes within a day
"""

import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from shared.domain.base import ValueObject
from shared.domain.exceptions import InvalidArgument, InvalidTime

MINUTES_PER_DAY = 24 * 60

# Matches Reservation.duration (decimal_places=3).
DURATION_QUANTUM = Decimal('0.001')

_CLOCK_RE = re.compile(r'^(\d{2}):(\d{2})$')


def clock_to_minutes(value: str) -> int:
    """Convert a canonical ``HH:mm`` string to minutes from midnight."""
    match = _CLOCK_RE.match(value or '')
    if not match:
        raise InvalidTime(f"Invalid time format: {value}")
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise InvalidTime(f"Invalid time value: {value}")
    return hours * 60 + minutes


def minutes_to_clock(minutes: int) -> str:
    """Format minutes from midnight as ``HH:mm``, wrapping past midnight."""
    minutes %= MINUTES_PER_DAY
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def round_duration(duration) -> Decimal:
    """Duration in hours at the stored precision of three decimal places."""
    try:
        hours = Decimal(str(duration))
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidArgument(f"Invalid duration: {duration!r}")
    if not hours.is_finite() or hours <= 0:
        raise InvalidArgument(f"Duration must be positive: {duration!r}")
    if hours > 24:
        raise InvalidArgument(f"Duration cannot exceed 24 hours: {duration!r}")
    hours = hours.quantize(DURATION_QUANTUM, rounding=ROUND_HALF_UP)
    if hours <= 0:
        raise InvalidArgument(f"Duration must be positive: {duration!r}")
    return hours


def duration_to_minutes(duration) -> int:
    """Round a duration in (possibly fractional) hours to whole minutes."""
    hours = round_duration(duration)
    return int((hours * 60).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class TimeSlot(ValueObject):
    """
    Time slot value object

    Represents minutes from midnight, start inclusive and end exclusive.
    The end is not wrapped, so a slot running past midnight keeps
    ``end_minute > MINUTES_PER_DAY`` and still compares correctly.
    """
    start_minute: int
    end_minute: int

    def __post_init__(self):
        if self.start_minute < 0 or self.start_minute >= MINUTES_PER_DAY:
            raise InvalidTime(f"Start minute out of range: {self.start_minute}")
        if self.start_minute >= self.end_minute:
            raise InvalidArgument(
                f"Slot start ({self.start_minute}) must be before end ({self.end_minute})"
            )

    @classmethod
    def from_start(cls, start_time: str, duration) -> 'TimeSlot':
        """Build a slot from ``HH:mm`` and a duration in hours."""
        start = clock_to_minutes(start_time)
        return cls(start, start + duration_to_minutes(duration))

    def overlaps_with(self, other: 'TimeSlot') -> bool:
        """
        Check if this slot overlaps with another

        Adjacent slots (one ends exactly when the other starts) do not overlap.
        """
        if not isinstance(other, TimeSlot):
            raise TypeError("Can only check overlap with another TimeSlot")
        return self.start_minute < other.end_minute and other.start_minute < self.end_minute

    @property
    def start_label(self) -> str:
        return minutes_to_clock(self.start_minute)

    @property
    def end_label(self) -> str:
        return minutes_to_clock(self.end_minute)

    def __len__(self) -> int:
        return self.end_minute - self.start_minute

    def __str__(self):
        return f"{self.start_label}-{self.end_label}"
