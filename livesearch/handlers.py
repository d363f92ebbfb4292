"""Request handling for the search endpoint.

The handler receives an already parsed :class:`SearchRequest` and returns a
status code with a JSON-ready payload. It never reads framework globals, so
the same object serves the FastAPI route, the tests and any other host.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Tuple

from .config import settings
from .errors import BackendUnavailable, InvalidToken
from .models import SEARCH_ACTION, ErrorResponse, SearchData, SearchRequest, SearchResponse, WidgetConfig
from .ranking import RankingService, clamp_limit
from .tokens import TokenStore

logger = logging.getLogger(__name__)

MIN_CHARS_FLOOR = 1
MIN_CHARS_CEILING = 10

Payload = Dict[str, Any]


def clamp_min_chars(min_chars: object) -> int:
    try:
        value = int(str(min_chars).strip()) if min_chars is not None else settings.min_chars
    except ValueError:
        value = settings.min_chars
    return max(MIN_CHARS_FLOOR, min(MIN_CHARS_CEILING, value))


def _error(message: str) -> Payload:
    return ErrorResponse(message=message).model_dump()


class RequestHandler:
    def __init__(self, service: RankingService, tokens: TokenStore) -> None:
        self.service = service
        self.tokens = tokens

    def check_token(self, token: str | None) -> None:
        if not self.tokens.verify(token):
            raise InvalidToken("nonce missing or expired")

    def handle(self, request: SearchRequest) -> Tuple[int, Payload]:
        if request.action != SEARCH_ACTION:
            logger.info("rejecting unknown action %r", request.action)
            return 400, _error("Unknown action.")

        try:
            self.check_token(request.nonce)
            items = self.service.search(request.term, request.limit)
        except InvalidToken:
            logger.info("rejecting search with invalid nonce")
            return 403, _error("Invalid request.")
        except BackendUnavailable as exc:
            logger.warning("search failed, catalog unavailable: %s", exc)
            return 400, _error("Catalog unavailable.")

        response = SearchResponse(data=SearchData(items=items))
        return 200, response.model_dump()

    def widget_config(
        self,
        limit: object = None,
        min_chars: object = None,
        placeholder: str | None = None,
    ) -> WidgetConfig:
        config = WidgetConfig(
            endpoint=settings.search_endpoint,
            nonce=self.tokens.issue(),
            limit=clamp_limit(limit),
            minChars=clamp_min_chars(min_chars),
        )
        if placeholder:
            config.placeholder = placeholder
        return config
