"""Loads a catalog export into the products index."""
from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Iterable

from elasticsearch import Elasticsearch, helpers

from .config import settings
from .models import PUBLISHED_STATUS

logger = logging.getLogger(__name__)


def load_catalog(path: Path) -> list[dict]:
    if not path.exists():
        logger.warning("Catalog file %s is missing", path)
        return []
    with path.open("r", encoding="utf-8") as fh:
        data = json.load(fh)
    if isinstance(data, dict):
        # Store exports sometimes wrap the list: {"products": [...]}.
        data = data.get("products", [])
    return data


def _first(raw: dict, *keys: str, default: Any = None) -> Any:
    for key in keys:
        value = raw.get(key)
        if value not in (None, ""):
            return value
    return default


def _category(raw: dict) -> str | None:
    value = _first(raw, "category", "categories")
    if isinstance(value, list):
        names = [item.get("name") if isinstance(item, dict) else item for item in value]
        value = next((name for name in names if name), None)
    elif isinstance(value, dict):
        value = value.get("name")
    return str(value) if value else None


def _price(raw: dict) -> float | None:
    value = _first(raw, "price", "regular_price")
    try:
        return float(value) if value is not None else None
    except (TypeError, ValueError):
        logger.debug("Unparseable price %r for product %s", value, raw.get("id"))
        return None


def _visible(raw: dict) -> bool:
    if "visible" in raw:
        return bool(raw["visible"])
    # WooCommerce: catalog_visibility is one of visible/catalog/search/hidden.
    return raw.get("catalog_visibility", "visible") != "hidden"


def prepare_product(raw: dict) -> dict:
    """Normalize a raw product record into a catalog document."""

    title = _first(raw, "title", "name", default="")
    product = {
        "id": str(_first(raw, "id", "externalId", "sku", default=title)),
        "title": title,
        "description": _first(raw, "description", "content", default=""),
        "shortDescription": _first(raw, "shortDescription", "short_description", "excerpt", default=""),
        "url": _first(raw, "url", "permalink", default=""),
        "category": _category(raw),
        "price": _price(raw),
        "currency": _first(raw, "currency"),
        "stockStatus": _first(raw, "stockStatus", "stock_status"),
        "status": _first(raw, "status", default=PUBLISHED_STATUS),
        "visible": _visible(raw),
    }
    return product


def _iter_actions(index: str, products: Iterable[dict]) -> Iterable[dict]:
    for product in products:
        yield {
            "_index": index,
            "_id": product["id"],
            "_source": product,
        }


async def import_catalog(es: Elasticsearch, path: str | Path | None = None) -> int:
    raw_products = load_catalog(Path(path or settings.catalog_path))
    if not raw_products:
        return 0
    products = [prepare_product(item) for item in raw_products]
    actions = list(_iter_actions(settings.es_index, products))
    await asyncio.to_thread(helpers.bulk, es, actions)
    logger.info("Indexed %s products into %s", len(actions), settings.es_index)
    return len(actions)


async def import_if_empty(es: Elasticsearch) -> int:
    from .indexing import index_is_empty

    if not await index_is_empty(es):
        return 0
    return await import_catalog(es)


async def reindex_data(es: Elasticsearch) -> int:
    from .indexing import drop_index, ensure_index

    await drop_index(es)
    await ensure_index(es)
    return await import_catalog(es)
