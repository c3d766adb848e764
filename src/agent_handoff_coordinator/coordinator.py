"""Agent coordinator facade.

Provides ``AgentCoordinator``, the single object agents and orchestrators
talk to.  It wires one ``DualBackendStore`` and one ``EventNotifier`` into
a ``MessageChannel`` and a ``HandoffCoordinator`` and owns their lifecycle:
create once per process, ``initialize()`` before use, ``shutdown()`` when
done (or use it as an async context manager).

Classes
-------
- CoordinatorStatus  — snapshot returned by ``get_status``
- AgentCoordinator   — messaging + handoff facade
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, Mapping

from pydantic import BaseModel, Field

from agent_handoff_coordinator.config import CoordinatorConfig
from agent_handoff_coordinator.events.notifier import CoordinatorEvent, EventHandler, EventNotifier
from agent_handoff_coordinator.handoff.coordinator import DeliverableSpec, HandoffCoordinator
from agent_handoff_coordinator.handoff.models import Handoff, ValidationReport
from agent_handoff_coordinator.messaging.channel import MessageChannel
from agent_handoff_coordinator.messaging.models import Message, MessagePriority
from agent_handoff_coordinator.storage.async_base import AsyncSharedStore
from agent_handoff_coordinator.storage.async_redis import AsyncRedisSharedStore
from agent_handoff_coordinator.storage.dual import DualBackendStore
from agent_handoff_coordinator.timestamps import epoch_millis

logger = logging.getLogger(__name__)


class CoordinatorStatus(BaseModel):
    """Point-in-time counters for a coordinator.

    Serialises with the names ``activeHandoffs``, ``pendingMessages``,
    ``storeConnected`` and ``timestamp``.
    """

    model_config = {"frozen": True, "populate_by_name": True}

    active_handoffs: int = Field(alias="activeHandoffs")
    pending_messages: int = Field(alias="pendingMessages")
    store_connected: bool = Field(alias="storeConnected")
    timestamp: int = Field(default_factory=epoch_millis)

    def to_dict(self) -> dict[str, Any]:
        """Return the status as a plain dict with the wire names."""
        return self.model_dump(by_alias=True)


class AgentCoordinator:
    """Messaging and handoff coordination for a set of agents.

    Parameters
    ----------
    store:
        Storage shared by messaging and handoffs.  Defaults to a
        local-only ``DualBackendStore``.
    notifier:
        Event notifier.  Defaults to a fresh ``EventNotifier``.
    config:
        Retention windows, default timeout and channel names.

    Example
    -------
    ::

        async with AgentCoordinator.from_config(CoordinatorConfig.from_env()) as coordinator:
            coordinator.on("handoff:timeout", alert)
            handoff_id = await coordinator.initiate_handoff("a", "b", ["report"])
    """

    def __init__(
        self,
        store: DualBackendStore | None = None,
        notifier: EventNotifier | None = None,
        *,
        config: CoordinatorConfig | None = None,
    ) -> None:
        self.config = config or CoordinatorConfig()
        self.store = store or DualBackendStore(timeout_seconds=self.config.store_timeout_seconds)
        self.notifier = notifier or EventNotifier()
        self.messages = MessageChannel(
            self.store,
            self.notifier,
            ttl_seconds=self.config.message_ttl_seconds,
            channel=self.config.message_channel,
        )
        self.handoffs = HandoffCoordinator(
            self.store,
            self.notifier,
            default_timeout_ms=self.config.default_timeout_ms,
            pending_ttl_seconds=self.config.pending_handoff_ttl_seconds,
            terminal_ttl_seconds=self.config.terminal_handoff_ttl_seconds,
            channel=self.config.handoff_channel,
        )

    # ------------------------------------------------------------------
    # Factory
    # ------------------------------------------------------------------

    @classmethod
    def from_config(
        cls,
        config: CoordinatorConfig,
        shared: AsyncSharedStore | None = None,
    ) -> "AgentCoordinator":
        """Build a coordinator, choosing the shared backend from ``config``.

        An explicit ``shared`` backend wins over ``config.redis_url``.
        """
        if shared is None and config.redis_url:
            shared = AsyncRedisSharedStore(
                url=config.redis_url,
                key_prefix=config.key_prefix,
                socket_timeout=config.store_timeout_seconds,
            )
        store = DualBackendStore(shared, timeout_seconds=config.store_timeout_seconds)
        return cls(store, config=config)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def initialize(self) -> bool:
        """Connect the store.  Returns False (and keeps working) when local-only."""
        return await self.store.connect()

    async def shutdown(self) -> None:
        """Cancel outstanding handoff timers and close the shared store."""
        await self.handoffs.shutdown()
        await self.store.close()
        logger.debug("AgentCoordinator: shut down")

    async def __aenter__(self) -> "AgentCoordinator":
        await self.initialize()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.shutdown()

    # ------------------------------------------------------------------
    # Messaging
    # ------------------------------------------------------------------

    async def send_message(
        self,
        from_agent: str,
        to_agent: str,
        content: Any,
        priority: MessagePriority | str = MessagePriority.NORMAL,
    ) -> str:
        """Send ``content`` from ``from_agent`` to ``to_agent``; return the message id."""
        return await self.messages.send_message(from_agent, to_agent, content, priority)

    async def get_message(self, message_id: str) -> Message | None:
        """Return the message with ``message_id`` or None."""
        return await self.messages.get_message(message_id)

    # ------------------------------------------------------------------
    # Handoffs
    # ------------------------------------------------------------------

    async def initiate_handoff(
        self,
        from_agent: str,
        to_agent: str,
        deliverables: Iterable[DeliverableSpec],
        timeout_ms: int | None = None,
    ) -> str:
        """Open a pending handoff; return its id."""
        return await self.handoffs.initiate_handoff(from_agent, to_agent, deliverables, timeout_ms)

    async def validate_deliverables(
        self, handoff_id: str, received: Mapping[str, Any]
    ) -> ValidationReport:
        """Check ``received`` against a pending handoff without changing it."""
        return await self.handoffs.validate_deliverables(handoff_id, received)

    async def complete_handoff(self, handoff_id: str, received: Mapping[str, Any]) -> Handoff:
        """Complete a pending handoff with ``received`` deliverables."""
        return await self.handoffs.complete_handoff(handoff_id, received)

    async def get_handoff(self, handoff_id: str) -> Handoff | None:
        """Return a handoff record (pending or terminal) or None."""
        return await self.handoffs.get_handoff(handoff_id)

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    def on(self, event: CoordinatorEvent | str, handler: EventHandler) -> Callable[[], None]:
        """Subscribe ``handler`` to a lifecycle event; returns an unsubscribe callable."""
        return self.notifier.on(event, handler)

    def get_status(self) -> CoordinatorStatus:
        """Return active handoff and cached message counts plus store connectivity."""
        return CoordinatorStatus(
            active_handoffs=self.handoffs.active_count,
            pending_messages=self.messages.pending_count(),
            store_connected=self.store.connected,
        )

    def __repr__(self) -> str:
        return f"AgentCoordinator(store={self.store!r}, handoffs={self.handoffs!r})"


__all__ = ["AgentCoordinator", "CoordinatorStatus"]
