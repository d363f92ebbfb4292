"""Shared fixtures for the search tests."""
from __future__ import annotations

from typing import List

import pytest

from livesearch.models import CatalogEntry
from livesearch.ranking import RankingService


def make_entry(title: str, *, in_stock: bool = True, **fields) -> CatalogEntry:
    fields.setdefault("id", title.lower().replace(" ", "-"))
    fields.setdefault("url", f"https://shop.test/product/{fields['id']}/")
    fields.setdefault("stockStatus", "instock" if in_stock else "outofstock")
    return CatalogEntry(title=title, **fields)


class CountingReader:
    """Catalog reader double that returns fixed candidates and counts calls."""

    def __init__(self, entries: List[CatalogEntry]) -> None:
        self.entries = entries
        self.calls: List[tuple[str, int]] = []

    def fetch_candidates(self, term: str, oversample_limit: int) -> List[CatalogEntry]:
        self.calls.append((term, oversample_limit))
        return list(self.entries)


@pytest.fixture
def blue_catalog() -> List[CatalogEntry]:
    return [
        make_entry("Blue Widget", category="Widgets", price=19.5, currency="USD"),
        make_entry("Blue Widgets Pro", in_stock=False, category="Widgets", price=49.0, currency="USD"),
        make_entry("Red Gadget", category="Gadgets", price=9.99, currency="USD"),
    ]


@pytest.fixture
def counting_reader(blue_catalog) -> CountingReader:
    return CountingReader(blue_catalog)


@pytest.fixture
def service(counting_reader) -> RankingService:
    return RankingService(counting_reader)
