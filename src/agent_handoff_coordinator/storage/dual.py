"""Local cache with best-effort write-through to an optional shared store.

Design
------
:class:`DualBackendStore` is the only storage object the coordinator
talks to.  The local cache is the source of truth for the current
process; the shared backend (if any) only adds cross-process visibility.
Which backend sits behind it is decided once, at construction time.

Local entries written with ``local_ttl_seconds`` are evicted once that
window passes; entries written without one live as long as the process.

Every remote call is bounded by ``asyncio.wait_for``.  Timeouts and
:class:`StoreUnavailableError` are logged and absorbed, so no operation
here ever raises because the shared backend misbehaves.

Classes
-------
- DualBackendStore  — local dict cache plus optional AsyncSharedStore
"""
from __future__ import annotations

import asyncio
import heapq
import json
import logging
import time
from typing import Any, Awaitable, Callable, Mapping, TypeVar

from pydantic import BaseModel, ValidationError

from agent_handoff_coordinator.storage.async_base import (
    AsyncSharedStore,
    NotificationHandler,
    StoreUnavailableError,
    Unsubscribe,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

DEFAULT_REMOTE_TIMEOUT_SECONDS = 2.0


class DualBackendStore:
    """Key/value + publish interface that works with or without a shared store.

    Parameters
    ----------
    shared:
        Optional shared backend.  ``None`` means local-only operation.
    timeout_seconds:
        Upper bound for each individual remote call.  Default: 2.0.
    clock:
        Zero-argument callable returning seconds, used for local expiry.
        Defaults to ``time.monotonic``.
    """

    def __init__(
        self,
        shared: AsyncSharedStore | None = None,
        timeout_seconds: float = DEFAULT_REMOTE_TIMEOUT_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be positive, got {timeout_seconds!r}.")
        self._shared = shared
        self._timeout_seconds = timeout_seconds
        self._clock = clock
        # key -> (record, absolute expiry or None for process lifetime)
        self._local: dict[str, tuple[BaseModel, float | None]] = {}
        self._expiries: list[tuple[float, str]] = []
        self._connected = False

    @property
    def connected(self) -> bool:
        """True while the shared backend is in use."""
        return self._connected

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> bool:
        """Try to reach the shared backend.  Never raises.

        Returns
        -------
        bool
            True when the shared backend is reachable, False when the
            store stays in local-only mode.
        """
        if self._shared is None:
            logger.info("DualBackendStore: no shared store configured, using local cache only")
            return False
        try:
            await asyncio.wait_for(self._shared.connect(), self._timeout_seconds)
        except asyncio.TimeoutError:
            logger.warning(
                "DualBackendStore: shared store connect timed out after %.1fs, "
                "using local cache only",
                self._timeout_seconds,
            )
            self._connected = False
            return False
        except StoreUnavailableError as exc:
            logger.warning("DualBackendStore: %s; using local cache only", exc)
            self._connected = False
            return False
        self._connected = True
        logger.info("DualBackendStore: connected to %r", self._shared)
        return True

    async def close(self) -> None:
        """Disconnect from the shared backend.  The local cache is kept."""
        if self._shared is None or not self._connected:
            return
        self._connected = False
        await self._remote("close", self._shared.close())

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    async def put(
        self,
        key: str,
        record: BaseModel,
        ttl_seconds: int,
        *,
        local_ttl_seconds: float | None = None,
    ) -> None:
        """Cache ``record`` locally, then best-effort write it through.

        The local write happens before the first suspension point, so a
        ``get`` issued in the same scheduler turn already sees it.
        ``local_ttl_seconds`` bounds how long the local copy is kept;
        None keeps it for the life of the process.
        """
        self._evict_expired()
        expires_at: float | None = None
        if local_ttl_seconds is not None:
            expires_at = self._clock() + local_ttl_seconds
            heapq.heappush(self._expiries, (expires_at, key))
        self._local[key] = (record, expires_at)
        if not self._connected or self._shared is None:
            return
        try:
            payload = record.model_dump_json(by_alias=True)
        except ValueError as exc:
            logger.warning("DualBackendStore: %r is not JSON-serialisable: %s", key, exc)
            return
        await self._remote("put", self._shared.put(key, payload, ttl_seconds))

    async def get(self, key: str, model: type[ModelT]) -> ModelT | None:
        """Return the record under ``key`` from the local cache or shared store.

        Shared-store misses, failures and undecodable payloads all resolve
        to None.
        """
        self._evict_expired()
        entry = self._local.get(key)
        if entry is not None:
            return entry[0]  # type: ignore[return-value]
        if not self._connected or self._shared is None:
            return None
        payload = await self._remote("get", self._shared.get(key))
        if payload is None:
            return None
        try:
            return model.model_validate_json(payload)
        except ValidationError as exc:
            logger.warning("DualBackendStore: could not decode %r: %s", key, exc)
            return None

    def count(self, prefix: str = "") -> int:
        """Number of locally cached records whose key starts with ``prefix``."""
        self._evict_expired()
        return sum(1 for key in self._local if key.startswith(prefix))

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    async def publish(self, channel: str, message: Mapping[str, Any]) -> None:
        """Fire-and-forget ``message`` (JSON-encoded) on ``channel``."""
        if not self._connected or self._shared is None:
            return
        await self._remote("publish", self._shared.publish(channel, json.dumps(message)))

    async def subscribe(self, channel: str, handler: NotificationHandler) -> Unsubscribe | None:
        """Subscribe ``handler`` to ``channel`` on the shared backend.

        Returns None when there is no reachable shared backend.
        """
        if not self._connected or self._shared is None:
            logger.debug("DualBackendStore: subscribe to %r skipped, not connected", channel)
            return None
        unsubscribe: Unsubscribe | None = await self._remote(
            "subscribe", self._shared.subscribe(channel, handler)
        )
        return unsubscribe

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _evict_expired(self) -> None:
        """Drop local entries whose expiry has passed."""
        now = self._clock()
        while self._expiries and self._expiries[0][0] <= now:
            expires_at, key = heapq.heappop(self._expiries)
            entry = self._local.get(key)
            # A later put may have replaced the entry with a new expiry.
            if entry is not None and entry[1] == expires_at:
                del self._local[key]

    async def _remote(self, operation: str, call: Awaitable[Any]) -> Any:
        """Await ``call`` within the timeout; absorb and log failures."""
        try:
            return await asyncio.wait_for(call, self._timeout_seconds)
        except asyncio.TimeoutError:
            logger.warning(
                "DualBackendStore: shared store %s timed out after %.1fs",
                operation,
                self._timeout_seconds,
            )
        except StoreUnavailableError as exc:
            logger.warning("DualBackendStore: %s", exc)
        return None

    def __repr__(self) -> str:
        return (
            f"DualBackendStore(shared={self._shared!r}, connected={self._connected}, "
            f"cached={len(self._local)})"
        )


__all__ = ["DEFAULT_REMOTE_TIMEOUT_SECONDS", "DualBackendStore"]
