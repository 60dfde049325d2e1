"""
Database helpers

Classifies integrity errors by the constraint that raised them. PostgreSQL
reports the constraint name through the driver diagnostics; SQLite only
puts the offending ``table.column`` list in the message, so both are
inspected.
"""

from django.db import IntegrityError, transaction
from django.db.utils import NotSupportedError

from shared.domain.exceptions import InvalidArgument


def violated_constraint(exc: IntegrityError) -> str:
    """Return the most specific description of the violated constraint."""
    cause = exc.__cause__
    diag = getattr(cause, 'diag', None)
    name = getattr(diag, 'constraint_name', None)
    if name:
        return name
    return str(cause or exc)


def is_violation_of(exc: IntegrityError, *markers: str) -> bool:
    """True if the integrity error mentions any of ``markers``."""
    description = violated_constraint(exc)
    return any(marker in description for marker in markers)


def lock_queryset_if_possible(queryset):
    """Apply select_for_update when inside transaction.atomic()."""

    if not transaction.get_connection().in_atomic_block:
        return queryset

    try:
        return queryset.select_for_update()
    except NotSupportedError:
        return queryset


def check_max_length(model, **values) -> None:
    """Raise ``InvalidArgument`` when a value would not fit its column."""

    for name, value in values.items():
        max_length = model._meta.get_field(name).max_length
        if value and max_length and len(value) > max_length:
            raise InvalidArgument(f"{name} exceeds {max_length} characters: {value[:40]!r}...")
