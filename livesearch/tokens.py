"""Anti-forgery tokens with Redis primary and in-memory fallback."""
from __future__ import annotations

import logging
import secrets
import threading
import time
from dataclasses import dataclass
from typing import Dict, Protocol

import redis

from .config import settings
from .errors import TokenUnavailable

logger = logging.getLogger(__name__)

KEY_PREFIX = "livesearch:nonce:"


def _new_token() -> str:
    return secrets.token_urlsafe(24)


class TokenStore(Protocol):
    def issue(self) -> str: ...

    def verify(self, token: str | None) -> bool: ...


@dataclass
class RedisTokenStore:
    client: redis.Redis
    ttl: int = settings.nonce_ttl_seconds

    def issue(self) -> str:
        token = _new_token()
        try:
            self.client.setex(KEY_PREFIX + token, self.ttl, b"1")
        except redis.RedisError as exc:
            logger.warning("Redis nonce store failed: %s", exc)
            raise TokenUnavailable("cannot store a new nonce") from exc
        return token

    def verify(self, token: str | None) -> bool:
        if not token:
            return False
        try:
            return bool(self.client.exists(KEY_PREFIX + token))
        except redis.RedisError as exc:
            logger.warning("Redis nonce lookup failed: %s", exc)
            return False


class InMemoryTokenStore:
    def __init__(self, ttl: int = settings.nonce_ttl_seconds) -> None:
        self.ttl = ttl
        self._store: Dict[str, float] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._store)

    def issue(self) -> str:
        token = _new_token()
        now = time.time()
        with self._lock:
            # Drop expired nonces here, most are never verified.
            expired = [key for key, expires_at in self._store.items() if expires_at < now]
            for key in expired:
                del self._store[key]
            self._store[token] = now + self.ttl
        return token

    def verify(self, token: str | None) -> bool:
        if not token:
            return False
        with self._lock:
            expires_at = self._store.get(token)
            if expires_at is None:
                return False
            if expires_at < time.time():
                self._store.pop(token, None)
                return False
            return True


_store: TokenStore | None = None


def get_token_store() -> TokenStore:
    global _store
    if _store is not None:
        return _store
    try:
        client = redis.Redis(host=settings.redis_host, port=settings.redis_port, decode_responses=False)
        client.ping()
        logger.info("Using Redis nonce store at %s:%s", settings.redis_host, settings.redis_port)
        _store = RedisTokenStore(client)
    except redis.RedisError:
        logger.warning("Redis not available, keeping nonces in memory")
        _store = InMemoryTokenStore()
    return _store
