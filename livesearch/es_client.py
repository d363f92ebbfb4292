"""Elasticsearch client factory for the catalog index.

No retries and a short timeout: a slow cluster answers typeahead searches
with "Catalog unavailable." instead of holding the request.
"""
from __future__ import annotations

import logging
from functools import lru_cache

from elasticsearch import Elasticsearch

from .config import settings

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT_SECONDS = 3
MAX_RETRIES = 0


@lru_cache(maxsize=1)
def get_client() -> Elasticsearch:
    logger.info("Catalog index %s on %s", settings.es_index, settings.es_host)
    return Elasticsearch(
        settings.es_host,
        request_timeout=REQUEST_TIMEOUT_SECONDS,
        max_retries=MAX_RETRIES,
        retry_on_timeout=False,
    )
