"""Transactional handoffs between agents.

Transfer a set of named deliverables from one agent to another with
per-deliverable validation and a deadline.

Classes
-------
DeliverableRequirement
    A named artifact the receiving agent must supply.
Handoff
    The handoff record.
HandoffCoordinator
    The pending -> completed | timeout state machine.
HandoffNotFoundError, ValidationFailedError
    Errors surfaced to callers.
"""
from __future__ import annotations

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

__all__ = [
    "DeliverableRequirement",
    "Handoff",
    "HandoffCoordinator",
    "HandoffNotFoundError",
    "HandoffStatus",
    "ValidationFailedError",
    "ValidationReport",
]
