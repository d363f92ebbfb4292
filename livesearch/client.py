"""Typeahead query client.

:class:`SearchWidget` is the headless counterpart of the search box: it owns
the input value, the debounce timer, the request lifecycle and the rendered
result list, and exposes the same keyboard contract as the page widget. A host
(browser bridge, TUI, test) feeds it input and key events and reads back
``state``, ``items``, ``status`` and ``active_index``.

Every request is tagged with an increasing sequence number and only the
latest one may update the widget, so a slow response for an old term can
never overwrite results for the current one.
"""
from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Set

import httpx

from .models import SEARCH_ACTION, WidgetConfig

logger = logging.getLogger(__name__)

DEBOUNCE_SECONDS = 0.25
REQUEST_TIMEOUT_SECONDS = 5.0

STATUS_SEARCHING = "Searching…"
STATUS_FAILED = "Search failed."
EMPTY_MESSAGE = "No results found."


class WidgetState(str, Enum):
    IDLE = "idle"
    DEBOUNCING = "debouncing"
    LOADING = "loading"
    DISPLAYING = "displaying"
    EMPTY = "empty"
    FAILED = "failed"


class SearchFailed(Exception):
    """Raised internally when a response cannot be used."""


class SearchWidget:
    def __init__(
        self,
        config: WidgetConfig,
        http: httpx.AsyncClient,
        *,
        debounce: float = DEBOUNCE_SECONDS,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
        on_activate: Optional[Callable[[Dict[str, Any]], None]] = None,
    ) -> None:
        self.config = config
        self.http = http
        self.debounce = debounce
        self.timeout = timeout
        self.on_activate = on_activate

        self.value = ""
        self.state = WidgetState.IDLE
        self.items: List[Dict[str, Any]] = []
        self.status = ""
        self.is_open = False
        self.active_index = -1
        self.mounted = False

        self._timer: Optional[asyncio.Task] = None
        self._requests: Set[asyncio.Task] = set()
        self._issued = 0

    # lifecycle

    def mount(self) -> None:
        self.mounted = True

    async def unmount(self) -> None:
        self.mounted = False
        self._cancel_timer()
        pending = list(self._requests)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        self._requests.clear()
        self.close()

    async def settle(self) -> None:
        """Wait until the debounce timer and all in-flight requests are done."""
        while True:
            pending = [task for task in (self._timer, *self._requests) if task is not None and not task.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    # events

    def on_input(self, value: str) -> None:
        if not self.mounted:
            return
        self.value = value
        self._cancel_timer()
        self.state = WidgetState.DEBOUNCING
        self._timer = asyncio.create_task(self._fire_after_pause())

    def on_key(self, key: str) -> bool:
        """Handle a key press; returns True when the key was consumed."""
        if key == "Escape":
            self.close()
            self.state = WidgetState.IDLE
            return True

        if not self.is_open or not self.items:
            return False

        if key == "ArrowDown":
            self.active_index = min(self.active_index + 1, len(self.items) - 1)
            return True
        if key == "ArrowUp":
            self.active_index = max(self.active_index - 1, -1)
            return True
        if key == "Enter" and 0 <= self.active_index < len(self.items):
            if self.on_activate is not None:
                self.on_activate(self.items[self.active_index])
            return True
        return False

    def on_focus(self) -> None:
        if not self.is_open and self.state in (WidgetState.DISPLAYING, WidgetState.EMPTY):
            self.is_open = True

    def on_outside_click(self) -> None:
        self.close()

    def close(self) -> None:
        self.is_open = False
        self.active_index = -1

    @property
    def panel_message(self) -> str:
        return EMPTY_MESSAGE if self.is_open and self.state == WidgetState.EMPTY else ""

    # internals

    def _cancel_timer(self) -> None:
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = None

    async def _fire_after_pause(self) -> None:
        await asyncio.sleep(self.debounce)
        term = self.value.strip()
        min_chars = self.config.minChars

        if len(term) < min_chars:
            # Anything still in flight belongs to an older term.
            self._issued += 1
            self.status = f"Type {min_chars - len(term)} more character(s)…" if term else ""
            self.state = WidgetState.IDLE
            self.items = []
            self.close()
            return

        self._issued += 1
        # Runs outside the timer task so the next keystroke does not cancel it.
        task = asyncio.create_task(self._search(term, self._issued))
        self._requests.add(task)
        task.add_done_callback(self._requests.discard)

    async def _search(self, term: str, seq: int) -> None:
        self.state = WidgetState.LOADING
        self.status = STATUS_SEARCHING
        try:
            items = await self._post(term)
        except SearchFailed as exc:
            if seq != self._issued:
                logger.debug("dropping failure of stale request #%s: %s", seq, exc)
                return
            logger.info("search for %r failed: %s", term, exc)
            self.items = []
            self.close()
            self.state = WidgetState.FAILED
            self.status = STATUS_FAILED
            return

        if seq != self._issued:
            logger.debug("dropping stale response #%s (latest #%s)", seq, self._issued)
            return

        self.items = items
        self.active_index = -1
        self.is_open = True
        self.state = WidgetState.DISPLAYING if items else WidgetState.EMPTY
        self.status = f"{len(items)} result(s)."

    async def _post(self, term: str) -> List[Dict[str, Any]]:
        form = {
            "action": SEARCH_ACTION,
            "nonce": self.config.nonce,
            "term": term,
            "limit": str(self.config.limit),
        }
        try:
            response = await self.http.post(self.config.endpoint, data=form, timeout=self.timeout)
            payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise SearchFailed(str(exc)) from exc

        if not isinstance(payload, dict) or not payload.get("success"):
            message = payload.get("message") if isinstance(payload, dict) else None
            raise SearchFailed(message or f"HTTP {response.status_code}")
        return list((payload.get("data") or {}).get("items") or [])
