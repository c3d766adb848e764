"""Async Redis shared store built on ``redis.asyncio``.

Keys and channels are namespaced under a common prefix so several
deployments can share one Redis database.

Classes
-------
- AsyncRedisSharedStore  — redis.asyncio-backed shared store with pub/sub
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any

import redis.asyncio as redis_asyncio
from redis.exceptions import RedisError

from agent_handoff_coordinator.storage.async_base import (
    AsyncSharedStore,
    NotificationHandler,
    StoreUnavailableError,
    Unsubscribe,
)

logger = logging.getLogger(__name__)


class AsyncRedisSharedStore(AsyncSharedStore):
    """Mirrors records into Redis using ``redis.asyncio``.

    Each record is stored as a Redis string under ``<key_prefix><key>``
    with ``SETEX``; notifications go out on ``<key_prefix><channel>``.

    Parameters
    ----------
    url:
        Redis connection URL (e.g. ``"redis://localhost:6379/0"``).
    key_prefix:
        String prepended to all keys and channel names.  Defaults to
        ``"ff:"``.
    socket_timeout:
        Seconds before a single socket operation is abandoned.
    client:
        Pre-built ``redis.asyncio.Redis`` client.  When given, ``url`` and
        ``socket_timeout`` are ignored.  Otherwise the client is built from
        ``url`` on first use, and a URL redis rejects surfaces as
        :class:`StoreUnavailableError` rather than at construction.
    """

    def __init__(
        self,
        url: str = "redis://localhost:6379/0",
        key_prefix: str = "ff:",
        socket_timeout: float = 2.0,
        client: Any | None = None,
    ) -> None:
        self._url = url
        self._socket_timeout = socket_timeout
        self._client = client
        self._key_prefix = key_prefix
        self._listeners: list[tuple[Any, asyncio.Task[None]]] = []

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _key(self, key: str) -> str:
        """Return the full Redis key (or channel name) for ``key``."""
        return f"{self._key_prefix}{key}"

    def _redis(self, operation: str) -> Any:
        """Return the client, building it from the URL on first use."""
        if self._client is None:
            try:
                self._client = redis_asyncio.Redis.from_url(
                    self._url,
                    decode_responses=True,
                    socket_timeout=self._socket_timeout,
                    socket_connect_timeout=self._socket_timeout,
                )
            except ValueError as exc:
                raise StoreUnavailableError(operation, f"invalid Redis URL: {exc}") from exc
        return self._client

    async def _call(self, operation: str, coro: Any) -> Any:
        """Await ``coro``, translating transport failures."""
        try:
            return await coro
        except (RedisError, OSError) as exc:
            raise StoreUnavailableError(operation, str(exc)) from exc

    # ------------------------------------------------------------------
    # AsyncSharedStore interface
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        """Verify the server is reachable with ``PING``."""
        await self._call("connect", self._redis("connect").ping())

    async def close(self) -> None:
        """Stop pub/sub listeners and close the client connection pool."""
        listeners, self._listeners = self._listeners, []
        for pubsub, task in listeners:
            try:
                await self._stop_listener(pubsub, task)
            except StoreUnavailableError as exc:
                logger.warning("AsyncRedisSharedStore: %s", exc)
        if self._client is not None:
            await self._call("close", self._client.aclose())

    async def put(self, key: str, payload: str, ttl_seconds: int) -> None:
        """Write ``payload`` with ``SETEX`` under the prefixed key."""
        await self._call("put", self._redis("put").setex(self._key(key), ttl_seconds, payload))

    async def get(self, key: str) -> str | None:
        """Return the payload under the prefixed key, or None."""
        value = await self._call("get", self._redis("get").get(self._key(key)))
        if value is None:
            return None
        return str(value)

    async def publish(self, channel: str, payload: str) -> None:
        """``PUBLISH`` ``payload`` on the prefixed channel."""
        await self._call("publish", self._redis("publish").publish(self._key(channel), payload))

    async def subscribe(self, channel: str, handler: NotificationHandler) -> Unsubscribe:
        """Listen on the prefixed channel in a background task."""
        pubsub = self._redis("subscribe").pubsub()

        async def on_message(message: dict[str, Any]) -> None:
            try:
                result = handler(str(message["data"]))
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("AsyncRedisSharedStore: subscriber on %r failed", channel)

        try:
            await self._call("subscribe", pubsub.subscribe(**{self._key(channel): on_message}))
        except StoreUnavailableError:
            await self._close_pubsub(pubsub)
            raise
        task: asyncio.Task[None] = asyncio.create_task(pubsub.run())
        entry = (pubsub, task)
        self._listeners.append(entry)

        async def unsubscribe() -> None:
            if entry not in self._listeners:
                return
            self._listeners.remove(entry)
            await self._stop_listener(pubsub, task)

        return unsubscribe

    async def _stop_listener(self, pubsub: Any, task: asyncio.Task[None]) -> None:
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        await self._call("unsubscribe", pubsub.aclose())

    async def _close_pubsub(self, pubsub: Any) -> None:
        """Release a pub/sub connection whose subscribe failed."""
        try:
            await self._call("unsubscribe", pubsub.aclose())
        except StoreUnavailableError as exc:
            logger.warning("AsyncRedisSharedStore: %s", exc)

    def __repr__(self) -> str:
        return f"AsyncRedisSharedStore(key_prefix={self._key_prefix!r})"


__all__ = ["AsyncRedisSharedStore"]
