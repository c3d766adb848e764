"""Unit tests for agent_handoff_coordinator.storage.async_redis.AsyncRedisSharedStore.

All tests inject an AsyncMock in place of the real redis client so no
Redis server is required.
"""
from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from agent_handoff_coordinator.storage.async_base import StoreUnavailableError
from agent_handoff_coordinator.storage.async_redis import AsyncRedisSharedStore
from agent_handoff_coordinator.storage.dual import DualBackendStore


# ---------------------------------------------------------------------------
# Helpers: build an AsyncRedisSharedStore around a mocked client
# ---------------------------------------------------------------------------


def _make_store(key_prefix: str = "ff:") -> tuple[AsyncRedisSharedStore, Any]:
    client = AsyncMock()
    pubsub = AsyncMock()
    client.pubsub = MagicMock(return_value=pubsub)
    store = AsyncRedisSharedStore(key_prefix=key_prefix, client=client)
    return store, client


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


class TestAsyncRedisSharedStoreConstruction:
    def test_builds_client_from_url_without_connecting(self) -> None:
        store = AsyncRedisSharedStore(url="redis://localhost:6390/2")
        assert store._key_prefix == "ff:"

    def test_repr_contains_prefix(self) -> None:
        store, _ = _make_store(key_prefix="myapp:")
        assert "myapp:" in repr(store)

    def test_key_is_prefixed(self) -> None:
        store, _ = _make_store(key_prefix="myapp:")
        assert store._key("message:1") == "myapp:message:1"


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------


class TestAsyncRedisSharedStoreOperations:
    @pytest.mark.asyncio
    async def test_connect_pings(self) -> None:
        store, client = _make_store()
        await store.connect()
        client.ping.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_put_uses_setex_with_prefixed_key(self) -> None:
        store, client = _make_store()
        await store.put("message:abc", '{"id": "abc"}', 3600)
        client.setex.assert_awaited_once_with("ff:message:abc", 3600, '{"id": "abc"}')

    @pytest.mark.asyncio
    async def test_get_returns_payload(self) -> None:
        store, client = _make_store()
        client.get.return_value = '{"id": "abc"}'
        assert await store.get("handoff:abc") == '{"id": "abc"}'
        client.get.assert_awaited_once_with("ff:handoff:abc")

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self) -> None:
        store, client = _make_store()
        client.get.return_value = None
        assert await store.get("handoff:ghost") is None

    @pytest.mark.asyncio
    async def test_publish_uses_prefixed_channel(self) -> None:
        store, client = _make_store()
        await store.publish("agent:messages", '{"type": "new_message"}')
        client.publish.assert_awaited_once_with("ff:agent:messages", '{"type": "new_message"}')

    @pytest.mark.asyncio
    async def test_subscribe_registers_handler_and_unsubscribe_closes(self) -> None:
        store, client = _make_store()
        received: list[str] = []
        unsubscribe = await store.subscribe("agent:handoffs", received.append)

        pubsub = client.pubsub.return_value
        pubsub.subscribe.assert_awaited_once()
        (channel, callback), = pubsub.subscribe.await_args.kwargs.items()
        assert channel == "ff:agent:handoffs"

        await callback({"type": "message", "data": "payload"})
        assert received == ["payload"]

        await unsubscribe()
        pubsub.aclose.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_close_closes_client(self) -> None:
        store, client = _make_store()
        await store.close()
        client.aclose.assert_awaited_once()


# ---------------------------------------------------------------------------
# Error translation
# ---------------------------------------------------------------------------


class TestAsyncRedisSharedStoreErrors:
    @pytest.mark.asyncio
    async def test_connection_error_becomes_store_unavailable(self) -> None:
        store, client = _make_store()
        client.ping.side_effect = RedisConnectionError("Connection refused")
        with pytest.raises(StoreUnavailableError, match="connect"):
            await store.connect()

    @pytest.mark.asyncio
    async def test_timeout_error_becomes_store_unavailable(self) -> None:
        store, client = _make_store()
        client.setex.side_effect = RedisTimeoutError("Timeout reading from socket")
        with pytest.raises(StoreUnavailableError) as exc_info:
            await store.put("k", "v", 60)
        assert exc_info.value.operation == "put"

    @pytest.mark.asyncio
    async def test_os_error_becomes_store_unavailable(self) -> None:
        store, client = _make_store()
        client.get.side_effect = OSError("Network is unreachable")
        with pytest.raises(StoreUnavailableError):
            await store.get("k")

    @pytest.mark.asyncio
    async def test_dual_store_degrades_when_redis_refuses(self) -> None:
        store, client = _make_store()
        client.ping.side_effect = RedisConnectionError("Connection refused")
        dual = DualBackendStore(store)
        assert await dual.connect() is False
        assert dual.connected is False

    @pytest.mark.asyncio
    async def test_url_without_scheme_fails_on_connect_not_construction(self) -> None:
        store = AsyncRedisSharedStore(url="localhost:6379")
        with pytest.raises(StoreUnavailableError, match="invalid Redis URL") as exc_info:
            await store.connect()
        assert exc_info.value.operation == "connect"

    @pytest.mark.asyncio
    async def test_dual_store_degrades_on_url_without_scheme(self) -> None:
        dual = DualBackendStore(AsyncRedisSharedStore(url="localhost:6379"))
        assert await dual.connect() is False
        await dual.close()


# ---------------------------------------------------------------------------
# Cleanup of pub/sub connections
# ---------------------------------------------------------------------------


class TestAsyncRedisSharedStoreCleanup:
    @pytest.mark.asyncio
    async def test_failed_subscribe_closes_pubsub(self) -> None:
        store, client = _make_store()
        pubsub = client.pubsub.return_value
        pubsub.subscribe.side_effect = RedisConnectionError("Connection reset")
        with pytest.raises(StoreUnavailableError, match="subscribe"):
            await store.subscribe("agent:handoffs", lambda payload: None)
        pubsub.aclose.assert_awaited_once()
        assert store._listeners == []

    @pytest.mark.asyncio
    async def test_close_survives_pubsub_close_failure(self) -> None:
        store, client = _make_store()
        await store.subscribe("agent:handoffs", lambda payload: None)
        client.pubsub.return_value.aclose.side_effect = RedisConnectionError("gone")
        await store.close()
        client.aclose.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_close_client_failure_becomes_store_unavailable(self) -> None:
        store, client = _make_store()
        client.aclose.side_effect = OSError("Broken pipe")
        with pytest.raises(StoreUnavailableError) as exc_info:
            await store.close()
        assert exc_info.value.operation == "close"
