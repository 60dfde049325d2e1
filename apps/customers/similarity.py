"""Trigram name similarity.

Computes the same score as PostgreSQL's ``pg_trgm.similarity`` so backends
without the extension rank names identically: every alphanumeric word is
lowercased and padded with two leading blanks and one trailing blank, split
into three-character grams, and the score is the size of the shared set
over the size of the union.
"""

from __future__ import annotations

import re

_WORD_RE = re.compile(r"[^\W_]+", re.UNICODE)


def trigrams(value: str | None) -> frozenset[str]:
    grams: set[str] = set()
    for word in _WORD_RE.findall((value or "").lower()):
        padded = f"  {word} "
        grams.update(padded[i:i + 3] for i in range(len(padded) - 2))
    return frozenset(grams)


def similarity(left: str | None, right: str | None) -> float:
    a, b = trigrams(left), trigrams(right)
    if not a or not b:
        return 0.0
    shared = len(a & b)
    return shared / float(len(a) + len(b) - shared)
