"""Abstract base class for shared (cross-process) key/value stores.

A shared store is the optional backend behind :class:`DualBackendStore`.
It holds JSON text under string keys with a TTL and fans out notifications
over named channels.

Classes
-------
- StoreUnavailableError  — raised when the backend cannot serve a call
- AsyncSharedStore       — abstract base for all shared-store backends
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Union

NotificationHandler = Callable[[str], Union[Awaitable[None], None]]
Unsubscribe = Callable[[], Awaitable[None]]


class StoreUnavailableError(ConnectionError):
    """Raised by a shared-store backend when it cannot complete a call.

    Never surfaces to coordinator callers: :class:`DualBackendStore`
    absorbs it and falls back to local-only behaviour.
    """

    def __init__(self, operation: str, reason: str) -> None:
        self.operation = operation
        self.reason = reason
        super().__init__(f"Shared store unavailable during {operation}: {reason}")


class AsyncSharedStore(ABC):
    """Protocol for an async, TTL-capable key/value store with pub/sub.

    Implementations translate their own transport errors into
    :class:`StoreUnavailableError`.
    """

    @abstractmethod
    async def connect(self) -> None:
        """Establish the connection, raising StoreUnavailableError on failure."""

    @abstractmethod
    async def close(self) -> None:
        """Release connections and background listeners."""

    @abstractmethod
    async def put(self, key: str, payload: str, ttl_seconds: int) -> None:
        """Store ``payload`` under ``key`` for ``ttl_seconds`` seconds.

        Parameters
        ----------
        key:
            Unprefixed record key such as ``"message:<id>"``.
        payload:
            JSON text to store.
        ttl_seconds:
            Retention window; the entry disappears once it elapses.
        """

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """Return the payload stored under ``key`` or None when absent/expired."""

    @abstractmethod
    async def publish(self, channel: str, payload: str) -> None:
        """Deliver ``payload`` to every subscriber of ``channel``."""

    @abstractmethod
    async def subscribe(self, channel: str, handler: NotificationHandler) -> Unsubscribe:
        """Register ``handler`` for notifications on ``channel``.

        Returns
        -------
        Unsubscribe
            A coroutine function that removes the subscription.
        """


__all__ = [
    "AsyncSharedStore",
    "NotificationHandler",
    "StoreUnavailableError",
    "Unsubscribe",
]
