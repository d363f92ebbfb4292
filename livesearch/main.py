"""FastAPI application wiring the live product search."""
from __future__ import annotations

import asyncio
import logging
from functools import lru_cache

from elastic_transport import TransportError
from elasticsearch import ApiError
from fastapi import Depends, FastAPI, Form, Query
from fastapi.responses import JSONResponse

from .catalog import ElasticsearchCatalogReader
from .config import settings
from .errors import TokenUnavailable
from .es_client import get_client
from .handlers import RequestHandler
from .importer import import_if_empty, reindex_data
from .indexing import ensure_index, index_is_empty
from .models import ErrorResponse, SearchRequest, WidgetConfig
from .ranking import RankingService
from .tokens import InMemoryTokenStore, TokenStore, get_token_store

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_LEVEL = logging.getLevelName(settings.log_level.upper())

logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT, force=True)
for name in ("uvicorn", "uvicorn.error", "uvicorn.access", "elastic_transport"):
    logging.getLogger(name).setLevel(LOG_LEVEL)

logger = logging.getLogger(__name__)
logger.info("Logging configured at %s", settings.log_level.upper())

app = FastAPI(title="Live Product Search")


@lru_cache(maxsize=1)
def get_ranking_service() -> RankingService:
    reader = ElasticsearchCatalogReader(get_client(), settings.es_index)
    return RankingService(reader)


def get_request_handler(
    service: RankingService = Depends(get_ranking_service),
    tokens: TokenStore = Depends(get_token_store),
) -> RequestHandler:
    return RequestHandler(service, tokens)


@app.on_event("startup")
async def startup_event() -> None:
    es = get_client()
    try:
        await ensure_index(es)
        if settings.load_on_startup:
            imported = await import_if_empty(es)
            if imported:
                logger.info("Imported %s products on startup", imported)
    except (ApiError, TransportError) as exc:
        # Searches will answer "Catalog unavailable." until the cluster is back.
        logger.warning("Elasticsearch not ready on startup: %s", exc)


@app.get("/health")
async def health(tokens: TokenStore = Depends(get_token_store)) -> dict:
    es = get_client()
    try:
        status = await asyncio.to_thread(es.cluster.health)
        es_status = status.get("status")
        empty = await index_is_empty(es)
    except (ApiError, TransportError) as exc:
        logger.warning("Health check could not reach Elasticsearch: %s", exc)
        es_status, empty = "unavailable", None
    return {
        "elasticsearch": es_status,
        "index": settings.es_index,
        "empty": empty,
        "nonces": "memory" if isinstance(tokens, InMemoryTokenStore) else "redis",
    }


@app.get("/widget/config", response_model=WidgetConfig)
async def widget_config(
    limit: str | None = Query(None, description="Result limit, clamped to 1..20"),
    min_chars: str | None = Query(None, description="Minimum query length, clamped to 1..10"),
    placeholder: str | None = Query(None),
    handler: RequestHandler = Depends(get_request_handler),
) -> WidgetConfig | JSONResponse:
    try:
        return await asyncio.to_thread(handler.widget_config, limit, min_chars, placeholder)
    except TokenUnavailable as exc:
        logger.warning("widget config without nonce: %s", exc)
        return JSONResponse(status_code=503, content=ErrorResponse(message="Search temporarily unavailable.").model_dump())


@app.post("/search")
async def search(
    action: str = Form(""),
    nonce: str = Form(""),
    term: str = Form(""),
    limit: str | None = Form(None),
    handler: RequestHandler = Depends(get_request_handler),
) -> JSONResponse:
    request = SearchRequest(action=action, nonce=nonce, term=term, limit=limit)
    status_code, payload = await asyncio.to_thread(handler.handle, request)
    return JSONResponse(status_code=status_code, content=payload)


@app.post("/reindex")
async def reindex() -> dict:
    es = get_client()
    count = await reindex_data(es)
    return {"indexed": count}
