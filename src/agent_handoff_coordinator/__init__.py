"""agent-handoff-coordinator — Messaging and transactional handoffs between agents.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
>>> import agent_handoff_coordinator
>>> agent_handoff_coordinator.__version__
'0.1.0'
"""
from __future__ import annotations

# Facade and configuration
from agent_handoff_coordinator.config import CoordinatorConfig
from agent_handoff_coordinator.coordinator import AgentCoordinator, CoordinatorStatus

# Events
from agent_handoff_coordinator.events.notifier import CoordinatorEvent, EventNotifier

# Messaging
from agent_handoff_coordinator.messaging.channel import MessageChannel
from agent_handoff_coordinator.messaging.models import Message, MessagePriority, MessageStatus

# Handoffs
from agent_handoff_coordinator.handoff.coordinator import (
    HandoffCoordinator,
    HandoffNotFoundError,
    ValidationFailedError,
)
from agent_handoff_coordinator.handoff.models import (
    DeliverableRequirement,
    Handoff,
    HandoffStatus,
    ValidationReport,
)

# Storage
from agent_handoff_coordinator.storage.async_base import AsyncSharedStore, StoreUnavailableError
from agent_handoff_coordinator.storage.async_memory import AsyncInMemorySharedStore
from agent_handoff_coordinator.storage.async_redis import AsyncRedisSharedStore
from agent_handoff_coordinator.storage.dual import DualBackendStore

from agent_handoff_coordinator.identifiers import new_id

__version__: str = "0.1.0"

__all__ = [
    "__version__",
    # Facade
    "AgentCoordinator",
    "CoordinatorConfig",
    "CoordinatorStatus",
    # Events
    "CoordinatorEvent",
    "EventNotifier",
    # Messaging
    "Message",
    "MessageChannel",
    "MessagePriority",
    "MessageStatus",
    # Handoffs
    "DeliverableRequirement",
    "Handoff",
    "HandoffCoordinator",
    "HandoffNotFoundError",
    "HandoffStatus",
    "ValidationFailedError",
    "ValidationReport",
    # Storage
    "AsyncInMemorySharedStore",
    "AsyncRedisSharedStore",
    "AsyncSharedStore",
    "DualBackendStore",
    "StoreUnavailableError",
    # Identifiers
    "new_id",
]
