"""Tiered match scoring for typeahead results.

A title is scored against the query in four tiers:

    exact match        10000
    prefix match        9000
    substring match     8000
    similarity only     0..7000

The similarity tier tops out below the substring tier so that any literal
match outranks every fuzzy one. Both sides are trimmed and lowercased before
comparison; the term is always treated as plain text.
"""
from __future__ import annotations

from rapidfuzz import fuzz

EXACT_SCORE = 10000
PREFIX_SCORE = 9000
CONTAINS_SCORE = 8000
SIMILARITY_CEILING = 7000
# One similarity percent is worth this many score points.
SIMILARITY_WEIGHT = 70


def normalize(text: str | None) -> str:
    return (text or "").strip().lower()


def similarity(left: str, right: str) -> float:
    """Percentage of characters shared by both strings, 0..100."""

    if not left or not right:
        return 0.0
    return fuzz.ratio(left, right)


def score(title: str | None, term: str | None) -> int:
    normalized_title = normalize(title)
    normalized_term = normalize(term)
    if not normalized_title or not normalized_term:
        return 0

    if normalized_title == normalized_term:
        return EXACT_SCORE
    if normalized_title.startswith(normalized_term):
        return PREFIX_SCORE
    if normalized_term in normalized_title:
        return CONTAINS_SCORE

    weighted = similarity(normalized_title, normalized_term) * SIMILARITY_WEIGHT
    bounded = min(SIMILARITY_CEILING, max(0.0, weighted))
    # Half-up rounding, values are never negative here.
    return int(bounded + 0.5)
