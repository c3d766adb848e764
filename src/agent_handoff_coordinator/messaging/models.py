"""Message domain model.

Classes
-------
- MessagePriority  — informational priority label
- MessageStatus    — message lifecycle state (only ``pending`` is assigned)
- Message          — an immutable point-to-point message between agents
"""
from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from agent_handoff_coordinator.identifiers import new_id
from agent_handoff_coordinator.timestamps import epoch_millis


class MessagePriority(str, Enum):
    """Priority label.  Does not affect ordering or delivery."""

    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"


class MessageStatus(str, Enum):
    """Message status.  Consumers layer their own read/ack state on top."""

    PENDING = "pending"


class Message(BaseModel):
    """A message sent from one agent to another.

    Serialised with the wire names ``from`` and ``to``; in Python the
    fields are ``from_agent`` and ``to_agent``.

    Parameters
    ----------
    id:
        Unique identifier assigned at creation.
    from_agent:
        Sending agent identifier.
    to_agent:
        Receiving agent identifier.
    content:
        Application-defined payload.
    priority:
        Informational priority label.
    timestamp:
        Creation time in epoch milliseconds.
    status:
        Always ``pending``.
    """

    model_config = {"frozen": True, "populate_by_name": True}

    id: str = Field(default_factory=new_id)
    from_agent: str = Field(alias="from")
    to_agent: str = Field(alias="to")
    content: Any = None
    priority: MessagePriority = MessagePriority.NORMAL
    timestamp: int = Field(default_factory=epoch_millis)
    status: MessageStatus = MessageStatus.PENDING

    def to_json(self) -> str:
        """Serialise to JSON using the wire field names."""
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_json(cls, json_str: str) -> "Message":
        """Deserialise from JSON produced by :meth:`to_json`."""
        return cls.model_validate_json(json_str)


__all__ = ["Message", "MessagePriority", "MessageStatus"]
