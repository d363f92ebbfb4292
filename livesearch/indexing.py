"""Products index creation and maintenance helpers."""
from __future__ import annotations

import asyncio
import logging

from elasticsearch import Elasticsearch
from elasticsearch.exceptions import BadRequestError, NotFoundError

from .config import settings
from .models import PUBLISHED_STATUS

logger = logging.getLogger(__name__)

PRODUCT_MAPPING = {
    "mappings": {
        "properties": {
            "id": {"type": "keyword"},
            "title": {
                "type": "text",
                "fields": {"keyword": {"type": "keyword", "ignore_above": 256}},
            },
            "description": {"type": "text"},
            "shortDescription": {"type": "text"},
            "url": {"type": "keyword", "index": False},
            "category": {"type": "keyword"},
            "price": {"type": "float"},
            "currency": {"type": "keyword"},
            "stockStatus": {"type": "keyword"},
            "status": {"type": "keyword"},
            "visible": {"type": "boolean"},
        }
    }
}


async def ensure_index(es: Elasticsearch) -> None:
    """Create the products index if it is missing."""

    exists = await asyncio.to_thread(es.indices.exists, index=settings.es_index)
    if exists:
        return
    logger.info("Creating index %s", settings.es_index)
    try:
        await asyncio.to_thread(es.indices.create, index=settings.es_index, body=PRODUCT_MAPPING)
    except BadRequestError as exc:
        if getattr(exc, "error", "") == "resource_already_exists_exception":
            logger.info("Index %s already exists", settings.es_index)
            return
        logger.exception("Failed to create index: %s", exc)
        raise


async def drop_index(es: Elasticsearch) -> None:
    """Remove the products index; a missing index is already dropped."""
    await asyncio.to_thread(es.options(ignore_status=404).indices.delete, index=settings.es_index)


async def index_is_empty(es: Elasticsearch) -> bool:
    """True when the index holds no product a visitor could find."""

    listed_only = {"bool": {"filter": [{"term": {"status": PUBLISHED_STATUS}}, {"term": {"visible": True}}]}}
    try:
        stats = await asyncio.to_thread(es.count, index=settings.es_index, query=listed_only)
    except NotFoundError:
        return True
    return stats.get("count", 0) == 0
