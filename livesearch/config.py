"""Application configuration and constants."""
from __future__ import annotations

import os
from dataclasses import dataclass


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name)
    return value if value is not None else default


@dataclass(frozen=True)
class Settings:
    """Simple settings container with environment variable overrides."""

    es_host: str = _get_env("ES_HOST", "http://localhost:9200")
    es_index: str = _get_env("ES_INDEX", "products")
    catalog_path: str = _get_env("CATALOG_PATH", "catalog.json")
    redis_host: str = _get_env("REDIS_HOST", "localhost")
    redis_port: int = int(_get_env("REDIS_PORT", "6379"))
    # CMS nonces stay valid for a day split in two ticks; keep the same order.
    nonce_ttl_seconds: int = int(_get_env("NONCE_TTL_SECONDS", "43200"))
    load_on_startup: bool = _get_env("LOAD_ON_STARTUP", "true").lower() in {"1", "true", "yes"}
    default_limit: int = int(_get_env("DEFAULT_LIMIT", "8"))
    min_chars: int = int(_get_env("MIN_CHARS", "2"))
    search_endpoint: str = _get_env("SEARCH_ENDPOINT", "/search")
    log_level: str = _get_env("LOG_LEVEL", "INFO")


settings = Settings()
