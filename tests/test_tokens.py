"""Tests for anti-forgery token stores."""
import pytest
import redis

from livesearch.errors import TokenUnavailable
from livesearch.tokens import KEY_PREFIX, InMemoryTokenStore, RedisTokenStore


class FakeRedis:
    def __init__(self, fail=False):
        self.data = {}
        self.fail = fail

    def setex(self, key, ttl, value):
        if self.fail:
            raise redis.ConnectionError("down")
        self.data[key] = (ttl, value)

    def exists(self, key):
        if self.fail:
            raise redis.ConnectionError("down")
        return int(key in self.data)


def test_in_memory_tokens_verify_until_expiry(monkeypatch):
    """Tokens stay reusable inside their lifetime and die after it."""

    store = InMemoryTokenStore(ttl=60)
    token = store.issue()

    assert store.verify(token)
    assert store.verify(token)
    assert not store.verify("forged")
    assert not store.verify("")
    assert not store.verify(None)

    monkeypatch.setattr("livesearch.tokens.time.time", lambda: 10**12)
    assert not store.verify(token)


def test_issuing_drops_expired_tokens(monkeypatch):
    """Unverified tokens do not pile up once they have expired."""

    store = InMemoryTokenStore(ttl=1)
    for _ in range(1000):
        store.issue()
    assert len(store) == 1000

    monkeypatch.setattr("livesearch.tokens.time.time", lambda: 1e12)
    live = store.issue()

    assert len(store) == 1
    assert store.verify(live)


def test_redis_tokens_are_stored_with_ttl():
    """Redis keeps each nonce under a prefixed key with the configured TTL."""

    client = FakeRedis()
    store = RedisTokenStore(client, ttl=120)

    token = store.issue()

    assert client.data[KEY_PREFIX + token][0] == 120
    assert store.verify(token)
    assert not store.verify("forged")


def test_redis_outage_rejects_tokens():
    """A failed lookup never lets a request through."""

    store = RedisTokenStore(FakeRedis(fail=True))

    assert not store.verify("anything")


def test_redis_outage_while_issuing_raises_token_unavailable():
    """A failed write surfaces as a typed error instead of a raw Redis one."""

    store = RedisTokenStore(FakeRedis(fail=True))

    with pytest.raises(TokenUnavailable):
        store.issue()
