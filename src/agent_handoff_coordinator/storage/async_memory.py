"""Async in-memory shared store.

Keeps payloads in a plain Python dict guarded by ``asyncio.Lock`` and
delivers notifications to in-process subscribers.  All data is lost when
the process exits.  Several coordinators in one process can share a single
instance, which makes this backend useful for tests and local prototyping.

Classes
-------
- AsyncInMemorySharedStore  — dict-backed ephemeral shared store
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from typing import Callable

from agent_handoff_coordinator.storage.async_base import (
    AsyncSharedStore,
    NotificationHandler,
    StoreUnavailableError,
    Unsubscribe,
)

logger = logging.getLogger(__name__)


class AsyncInMemorySharedStore(AsyncSharedStore):
    """Ephemeral async shared store backed by a Python dict.

    Entries carry an absolute expiry computed from ``clock``; expired
    entries are dropped lazily on read.

    Parameters
    ----------
    clock:
        Zero-argument callable returning seconds.  Defaults to
        ``time.monotonic``; tests inject a fake clock to expire entries.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, tuple[str, float]] = {}
        self._subscribers: dict[str, list[NotificationHandler]] = {}
        self._lock: asyncio.Lock = asyncio.Lock()
        self._closed = False

    # ------------------------------------------------------------------
    # AsyncSharedStore interface
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        """Mark the store open.  Always succeeds."""
        self._closed = False

    async def close(self) -> None:
        """Mark the store closed and drop all subscribers."""
        self._closed = True
        self._subscribers.clear()

    async def put(self, key: str, payload: str, ttl_seconds: int) -> None:
        """Store ``payload`` under ``key``, overwriting if present."""
        self._ensure_open("put")
        async with self._lock:
            self._entries[key] = (payload, self._clock() + ttl_seconds)

    async def get(self, key: str) -> str | None:
        """Return the live payload for ``key`` or None."""
        self._ensure_open("get")
        async with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            payload, expires_at = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return None
            return payload

    async def publish(self, channel: str, payload: str) -> None:
        """Call every handler subscribed to ``channel`` in subscription order."""
        self._ensure_open("publish")
        for handler in list(self._subscribers.get(channel, ())):
            try:
                result = handler(payload)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception(
                    "AsyncInMemorySharedStore: subscriber on %r failed", channel
                )

    async def subscribe(self, channel: str, handler: NotificationHandler) -> Unsubscribe:
        """Register ``handler`` on ``channel`` and return its remover."""
        self._ensure_open("subscribe")
        self._subscribers.setdefault(channel, []).append(handler)

        async def unsubscribe() -> None:
            handlers = self._subscribers.get(channel, [])
            if handler in handlers:
                handlers.remove(handler)

        return unsubscribe

    # ------------------------------------------------------------------
    # Extras
    # ------------------------------------------------------------------

    def _ensure_open(self, operation: str) -> None:
        if self._closed:
            raise StoreUnavailableError(operation, "store is closed")

    async def clear(self) -> None:
        """Remove all stored entries."""
        async with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"AsyncInMemorySharedStore(entries={len(self._entries)})"


__all__ = ["AsyncInMemorySharedStore"]
