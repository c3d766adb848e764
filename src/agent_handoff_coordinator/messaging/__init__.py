"""Asynchronous point-to-point messaging between agents.

Classes
-------
Message
    Immutable message record.
MessagePriority
    low / normal / high label.
MessageChannel
    Send, look up, and watch for messages.
"""
from __future__ import annotations

from agent_handoff_coordinator.messaging.channel import MessageChannel
from agent_handoff_coordinator.messaging.models import Message, MessagePriority, MessageStatus

__all__ = ["Message", "MessageChannel", "MessagePriority", "MessageStatus"]
