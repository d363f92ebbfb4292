"""Pydantic models for catalog entries and request/response payloads."""
from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel, Field

SEARCH_ACTION = "live_product_search"

# Index field values that mark an entry as publicly listed.
PUBLISHED_STATUS = "publish"
IN_STOCK = "instock"

AVAILABILITY_LABELS = {
    "instock": "In stock",
    "outofstock": "Out of stock",
    "onbackorder": "On backorder",
}


class CatalogEntry(BaseModel):
    id: str
    title: str = ""
    description: str = ""
    shortDescription: str = ""
    url: str = ""
    category: str | None = None
    price: float | None = None
    currency: str | None = None
    stockStatus: str | None = None
    status: str = PUBLISHED_STATUS
    visible: bool = True

    @property
    def in_stock(self) -> bool:
        return (self.stockStatus or "").lower() == IN_STOCK

    @property
    def is_listed(self) -> bool:
        return self.status == PUBLISHED_STATUS and self.visible


@dataclass
class ScoredItem:
    """A candidate with its per-request match score.

    Scores only compare within one request and are never serialized.
    """

    title: str
    normalized_title: str
    score: int
    in_stock: bool
    entry: CatalogEntry

    def sort_key(self) -> tuple[bool, int, str]:
        return (not self.in_stock, -self.score, self.normalized_title)


class ResultItem(BaseModel):
    id: str
    title: str
    url: str
    category: str
    price: str
    availability: str
    outOfStock: bool
    snippet: str = ""


class SearchRequest(BaseModel):
    action: str = ""
    nonce: str = ""
    term: str = ""
    limit: str | None = None


class SearchData(BaseModel):
    items: list[ResultItem] = Field(default_factory=list)


class SearchResponse(BaseModel):
    success: bool = True
    data: SearchData


class ErrorResponse(BaseModel):
    success: bool = False
    message: str


class WidgetConfig(BaseModel):
    endpoint: str
    nonce: str
    limit: int
    minChars: int
    placeholder: str = "Search products…"
