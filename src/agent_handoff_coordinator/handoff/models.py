"""Handoff domain models.

All types are Pydantic BaseModel subclasses so that records can be
mirrored to the shared store as JSON and read back by other processes.
Python attribute names are snake_case; JSON uses the wire names
(``from``, ``to``, ``timeoutMs``, ``completedAt``, ``timeoutAt``).

Classes
-------
- HandoffStatus           — pending / completed / timeout
- DeliverableRequirement  — one named artifact a handoff requires
- ValidationReport        — outcome of checking received deliverables
- Handoff                 — a handoff record and its lifecycle stamps
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Callable

from pydantic import BaseModel, Field, model_validator

from agent_handoff_coordinator.identifiers import new_id
from agent_handoff_coordinator.timestamps import epoch_millis

Validator = Callable[[Any], Any]


class HandoffStatus(str, Enum):
    """Handoff lifecycle states.  ``completed`` and ``timeout`` are terminal."""

    PENDING = "pending"
    COMPLETED = "completed"
    TIMEOUT = "timeout"

    @property
    def is_terminal(self) -> bool:
        return self is not HandoffStatus.PENDING


class DeliverableRequirement(BaseModel):
    """A named artifact the receiving agent must deliver.

    Parameters
    ----------
    name:
        Key the delivered value must appear under.
    validator:
        Optional predicate called with the delivered value.  May return a
        bool or an awaitable resolving to one.  ``None`` means the value
        only has to be present.  Never serialised.
    """

    model_config = {"frozen": True}

    name: str = Field(min_length=1)
    validator: Validator | None = Field(default=None, exclude=True)


class ValidationReport(BaseModel):
    """Result of checking received deliverables against a handoff.

    Parameters
    ----------
    complete:
        True when nothing is missing and every validator passed.
    missing:
        Names of required deliverables that were not supplied.
    errors:
        One message per deliverable that failed or raised in its validator.
    """

    complete: bool = True
    missing: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)


class Handoff(BaseModel):
    """A transactional transfer of deliverables between two agents.

    Parameters
    ----------
    id:
        Unique identifier assigned at creation.
    from_agent:
        The agent handing work off.
    to_agent:
        The agent that must supply the deliverables.
    deliverables:
        Ordered requirement contract, fixed at creation.
    status:
        Current lifecycle state.
    timestamp:
        Creation time in epoch milliseconds.
    timeout_ms:
        Milliseconds after creation at which a pending handoff times out.
    completed_at:
        Epoch milliseconds of completion, when completed.
    timeout_at:
        Epoch milliseconds of the timeout, when timed out.
    received:
        The deliverable values accepted on completion.
    """

    model_config = {"populate_by_name": True}

    id: str = Field(default_factory=new_id)
    from_agent: str = Field(alias="from")
    to_agent: str = Field(alias="to")
    deliverables: list[DeliverableRequirement] = Field(default_factory=list)
    status: HandoffStatus = HandoffStatus.PENDING
    timestamp: int = Field(default_factory=epoch_millis)
    timeout_ms: int = Field(alias="timeoutMs", gt=0)
    completed_at: int | None = Field(default=None, alias="completedAt")
    timeout_at: int | None = Field(default=None, alias="timeoutAt")
    received: dict[str, Any] | None = None

    @model_validator(mode="after")
    def _unique_deliverable_names(self) -> "Handoff":
        names = self.required_names
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"Duplicate deliverable names: {duplicates!r}.")
        return self

    @property
    def required_names(self) -> list[str]:
        """Deliverable names in contract order."""
        return [requirement.name for requirement in self.deliverables]

    @property
    def deadline(self) -> int:
        """Epoch milliseconds at which this handoff times out if still pending."""
        return self.timestamp + self.timeout_ms

    def to_json(self) -> str:
        """Serialise to JSON using the wire field names.  Validators are dropped."""
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_json(cls, json_str: str) -> "Handoff":
        """Deserialise from JSON produced by :meth:`to_json`."""
        return cls.model_validate_json(json_str)

    def summary_line(self) -> str:
        """Return a one-line human-readable description."""
        return (
            f"Handoff {self.id[:8]} | {self.from_agent} -> {self.to_agent} | "
            f"{self.status.value} | deliverables={self.required_names!r}"
        )


__all__ = [
    "DeliverableRequirement",
    "Handoff",
    "HandoffStatus",
    "ValidationReport",
    "Validator",
]
