"""Lifecycle event notification.

Classes
-------
CoordinatorEvent
    The four event names: message:sent, handoff:initiated,
    handoff:completed, handoff:timeout.
EventNotifier
    Synchronous handler registry the coordinator emits through.
"""
from __future__ import annotations

from agent_handoff_coordinator.events.notifier import CoordinatorEvent, EventHandler, EventNotifier

__all__ = ["CoordinatorEvent", "EventHandler", "EventNotifier"]
