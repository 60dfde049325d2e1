"""Identity field normalization helpers."""

from __future__ import annotations

import re

COUNTRY_CODE = "66"
NORMALIZED_PHONE_LENGTH = 9

_NON_DIGITS = re.compile(r"\D")


def normalize_phone(raw: str | None) -> str:
    """Reduce a phone number to its last nine national digits.

    ``+66 81-234-5678``, ``0812345678`` and ``812345678`` all become
    ``812345678``. Anything shorter than nine digits is unmatchable and
    yields an empty string.

    The ``66`` country code is only dropped when at least nine digits
    remain after it, so normalizing a key twice returns the same key.
    """
    if not raw:
        return ""

    digits = _NON_DIGITS.sub("", str(raw))
    if digits.startswith(COUNTRY_CODE) and len(digits) - len(COUNTRY_CODE) >= NORMALIZED_PHONE_LENGTH:
        digits = digits[len(COUNTRY_CODE):]
    if digits.startswith("0"):
        digits = digits[1:]

    if len(digits) < NORMALIZED_PHONE_LENGTH:
        return ""
    return digits[-NORMALIZED_PHONE_LENGTH:]


def clean_text(value: str | None) -> str | None:
    """Strip surrounding whitespace and turn blanks into ``None``."""
    if value is None:
        return None
    value = str(value).strip()
    return value or None
