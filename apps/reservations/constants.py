"""Bay layout of the venue."""

from __future__ import annotations

# Preference order, Bay 1 is the bar bay.
MULTI_SEAT_UNITS: tuple[str, ...] = ("Bay 2", "Bay 3", "Bay 1")
SPECIALTY_UNITS: tuple[str, ...] = ("Bay 4",)

MULTI_SEAT_CAPACITY = 5
SPECIALTY_CAPACITY = 2

ALL_UNITS: tuple[str, ...] = MULTI_SEAT_UNITS + SPECIALTY_UNITS
UNIT_CAPACITY: dict[str, int] = {
    **{unit: MULTI_SEAT_CAPACITY for unit in MULTI_SEAT_UNITS},
    **{unit: SPECIALTY_CAPACITY for unit in SPECIALTY_UNITS},
}
UNIT_CHOICES = [(unit, unit) for unit in sorted(ALL_UNITS)]

OVERLAP_CONSTRAINT = "reservation_no_unit_overlap"


def unit_preferences(party_size: int) -> tuple[str, ...]:
    """Units to try, best first. Empty when no bay can seat the party."""

    if party_size == 1:
        return SPECIALTY_UNITS + MULTI_SEAT_UNITS
    if party_size == 2:
        return MULTI_SEAT_UNITS + SPECIALTY_UNITS
    if 3 <= party_size <= MULTI_SEAT_CAPACITY:
        return MULTI_SEAT_UNITS
    return ()
