"""Ranking service: candidate fetch, scoring, ordering and result shaping."""
from __future__ import annotations

import html
import logging
import re
from time import perf_counter
from typing import Iterable, List, Sequence

from .catalog import CatalogReader, oversample_limit
from .config import settings
from .models import AVAILABILITY_LABELS, CatalogEntry, ResultItem, ScoredItem
from .scoring import normalize, score

logger = logging.getLogger(__name__)

MIN_LIMIT = 1
MAX_LIMIT = 20
DEFAULT_LIMIT = settings.default_limit

MISSING_CATEGORY = "Uncategorised"
MISSING_PRICE = "N/A"
UNKNOWN_AVAILABILITY = "Unknown"

SNIPPET_LENGTH = 140
_TAG_RE = re.compile(r"<[^>]*>")
_WHITESPACE_RE = re.compile(r"\s+")


def clamp_limit(limit: object) -> int:
    """Coerce a client supplied limit into ``[MIN_LIMIT, MAX_LIMIT]``."""
    if isinstance(limit, bool):
        limit = None
    try:
        value = int(str(limit).strip()) if limit is not None else DEFAULT_LIMIT
    except ValueError:
        value = DEFAULT_LIMIT
    return max(MIN_LIMIT, min(MAX_LIMIT, value))


def make_snippet(entry: CatalogEntry) -> str:
    raw = entry.shortDescription or entry.description
    text = html.unescape(_TAG_RE.sub(" ", raw or ""))
    text = _WHITESPACE_RE.sub(" ", text).strip()
    if len(text) > SNIPPET_LENGTH:
        return text[:SNIPPET_LENGTH] + "…"
    return text


def format_price(entry: CatalogEntry) -> str:
    if entry.price is None:
        return MISSING_PRICE
    amount = f"{entry.price:,.2f}"
    return f"{amount} {entry.currency}" if entry.currency else amount


def rank(candidates: Iterable[CatalogEntry], term: str) -> List[ScoredItem]:
    """Score every candidate and order them.

    Order: in stock first, then higher score, then lowercase title. The key
    is total so the result does not depend on retrieval order.
    """

    scored = [
        ScoredItem(
            title=entry.title,
            normalized_title=normalize(entry.title),
            score=score(entry.title, term),
            in_stock=entry.in_stock,
            entry=entry,
        )
        for entry in candidates
    ]
    scored.sort(key=ScoredItem.sort_key)
    return scored


def to_result(item: ScoredItem) -> ResultItem:
    entry = item.entry
    status = (entry.stockStatus or "").lower()
    return ResultItem(
        id=entry.id,
        title=entry.title,
        url=entry.url or "",
        category=entry.category or MISSING_CATEGORY,
        price=format_price(entry),
        availability=AVAILABILITY_LABELS.get(status, UNKNOWN_AVAILABILITY),
        outOfStock=not item.in_stock,
        snippet=make_snippet(entry),
    )


def assemble(ranked: Sequence[ScoredItem], limit: int) -> List[ResultItem]:
    # Truncation must come after ranking, never on the raw candidate pool.
    return [to_result(item) for item in ranked[:limit]]


class RankingService:
    """Answers one typeahead query against an injected catalog reader."""

    def __init__(self, reader: CatalogReader) -> None:
        self.reader = reader

    def search(self, term: str | None, limit: object = None) -> List[ResultItem]:
        effective_limit = clamp_limit(limit)
        clean_term = (term or "").strip()
        if not clean_term:
            logger.debug("empty term, skipping catalog lookup")
            return []

        t0 = perf_counter()
        pool_size = oversample_limit(effective_limit)
        candidates = self.reader.fetch_candidates(clean_term, pool_size)
        t1 = perf_counter()
        ranked = rank(candidates, clean_term)
        results = assemble(ranked, effective_limit)
        t2 = perf_counter()

        logger.info(
            "timing: total=%.2fms fetch=%.2fms rank=%.2fms term=%r limit=%s pool=%s candidates=%s results=%s",
            (t2 - t0) * 1000,
            (t1 - t0) * 1000,
            (t2 - t1) * 1000,
            clean_term,
            effective_limit,
            pool_size,
            len(candidates),
            len(results),
        )
        return results
