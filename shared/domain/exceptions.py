"""
Ledger error taxonomy

Every failure raised by the matching, allocation and ingest services is a
``LedgerError`` so callers can record it against the upstream message
instead of losing it.
"""


class LedgerError(Exception):
    """Base class for failures surfaced by the ledger services."""


class InvalidArgument(LedgerError, ValueError):
    """Malformed date, time or enumeration value. Never retried."""


class InvalidTime(InvalidArgument):
    """Time string is neither ``h:mm AM/PM`` nor ``HH:mm``."""


class DuplicateContact(LedgerError):
    """Normalized phone already belongs to an active customer."""


class CodeCollision(LedgerError):
    """Generated code or id kept colliding after the bounded retries."""


class NoCapacity(LedgerError):
    """No unit is free for the requested slot."""


class AmbiguousMatch(LedgerError):
    """More than one candidate qualified for a match."""

    def __init__(self, message: str, candidates=None):
        super().__init__(message)
        self.candidates = list(candidates or [])


class NotFound(LedgerError):
    """Cancel or lookup target is missing."""
