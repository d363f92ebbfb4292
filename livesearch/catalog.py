"""Candidate retrieval from the product catalog.

Retrieval is deliberately coarse: it only has to pull enough plausible
products for the scorer to rank. Whatever order the backend returns is thrown
away downstream.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Protocol

from elastic_transport import TransportError
from elasticsearch import ApiError, Elasticsearch
from pydantic import ValidationError

from .errors import BackendUnavailable
from .importer import load_catalog, prepare_product
from .models import PUBLISHED_STATUS, CatalogEntry

logger = logging.getLogger(__name__)

OVERSAMPLE_FACTOR = 8
MIN_POOL_SIZE = 50
MAX_POOL_SIZE = 200

TEXT_FIELDS = ["title", "description", "shortDescription"]


def oversample_limit(limit: int) -> int:
    """Size of the candidate pool for a given display limit."""
    return max(MIN_POOL_SIZE, min(MAX_POOL_SIZE, limit * OVERSAMPLE_FACTOR))


class CatalogReader(Protocol):
    def fetch_candidates(self, term: str, oversample_limit: int) -> List[CatalogEntry]: ...


def _build_query(term: str, size: int) -> Dict[str, Any]:
    query = {
        "size": size,
        "query": {
            "bool": {
                "must": [
                    {
                        "multi_match": {
                            "query": term,
                            "fields": TEXT_FIELDS,
                            "type": "phrase_prefix",
                        }
                    }
                ],
                "filter": [
                    {"term": {"status": PUBLISHED_STATUS}},
                    {"term": {"visible": True}},
                ],
            }
        },
    }
    logger.debug("ES candidate query payload=%s", query)
    return query


class ElasticsearchCatalogReader:
    """Reads candidates from the products index."""

    def __init__(self, es: Elasticsearch, index: str) -> None:
        self.es = es
        self.index = index

    def fetch_candidates(self, term: str, oversample_limit: int) -> List[CatalogEntry]:
        body = _build_query(term, oversample_limit)
        try:
            response = self.es.search(index=self.index, body=body)
        except (ApiError, TransportError) as exc:
            logger.error("Catalog search failed on index %s: %s", self.index, exc)
            raise BackendUnavailable(f"catalog index {self.index!r} is unavailable") from exc

        entries: List[CatalogEntry] = []
        for hit in response.get("hits", {}).get("hits", []):
            source = dict(hit.get("_source", {}))
            source.setdefault("id", hit.get("_id"))
            try:
                entries.append(CatalogEntry(**source))
            except ValidationError as exc:
                logger.warning("Skipping malformed catalog document %s: %s", hit.get("_id"), exc)
        logger.debug("term=%r pool_size=%s fetched=%s", term, oversample_limit, len(entries))
        return entries


class InMemoryCatalogReader:
    """Literal substring matching over a list of entries kept in memory."""

    def __init__(self, entries: Iterable[CatalogEntry]) -> None:
        self.entries = list(entries)

    @classmethod
    def from_file(cls, path: str | Path) -> "InMemoryCatalogReader":
        file_path = Path(path)
        if not file_path.exists():
            raise BackendUnavailable(f"catalog file {file_path} does not exist")
        try:
            raw_products = load_catalog(file_path)
        except (OSError, json.JSONDecodeError) as exc:
            raise BackendUnavailable(f"cannot read catalog file {file_path}") from exc
        if not isinstance(raw_products, list):
            raise BackendUnavailable(f"catalog file {file_path} does not hold a product list")

        entries: List[CatalogEntry] = []
        for position, raw in enumerate(raw_products):
            if not isinstance(raw, dict):
                logger.warning("Skipping catalog record %s: not an object", position)
                continue
            try:
                entries.append(CatalogEntry(**prepare_product(raw)))
            except ValidationError as exc:
                logger.warning("Skipping malformed catalog record %s: %s", position, exc)
        return cls(entries)

    def fetch_candidates(self, term: str, oversample_limit: int) -> List[CatalogEntry]:
        needle = term.lower()
        matches: List[CatalogEntry] = []
        for entry in self.entries:
            if not entry.is_listed:
                continue
            haystacks = (entry.title, entry.description, entry.shortDescription)
            if any(needle in (text or "").lower() for text in haystacks):
                matches.append(entry)
                if len(matches) >= oversample_limit:
                    break
        return matches
