"""Storage subpackage.

The coordinator only ever talks to ``DualBackendStore``; the shared
backends implement the ``AsyncSharedStore`` ABC and are picked once at
startup.

Public surface
--------------
- DualBackendStore          — local cache with best-effort write-through
- AsyncSharedStore          — abstract base class for shared backends
- AsyncInMemorySharedStore  — in-process shared backend (always available)
- AsyncRedisSharedStore     — redis.asyncio shared backend
- StoreUnavailableError     — internal failure signal, absorbed by DualBackendStore
"""
from __future__ import annotations

from agent_handoff_coordinator.storage.async_base import AsyncSharedStore, StoreUnavailableError
from agent_handoff_coordinator.storage.async_memory import AsyncInMemorySharedStore
from agent_handoff_coordinator.storage.async_redis import AsyncRedisSharedStore
from agent_handoff_coordinator.storage.dual import DualBackendStore

__all__ = [
    "AsyncInMemorySharedStore",
    "AsyncRedisSharedStore",
    "AsyncSharedStore",
    "DualBackendStore",
    "StoreUnavailableError",
]
