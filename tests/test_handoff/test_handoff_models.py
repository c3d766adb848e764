"""Tests for agent_handoff_coordinator.handoff.models."""
from __future__ import annotations

import json

import pytest

from agent_handoff_coordinator.handoff.models import (
    DeliverableRequirement,
    Handoff,
    HandoffStatus,
    ValidationReport,
)


def _make_handoff(**overrides: object) -> Handoff:
    fields: dict[str, object] = {
        "from_agent": "agent_a",
        "to_agent": "agent_b",
        "deliverables": [
            DeliverableRequirement(name="report", validator=lambda value: bool(value)),
            DeliverableRequirement(name="data"),
        ],
        "timeout_ms": 1_000,
    }
    fields.update(overrides)
    return Handoff(**fields)  # type: ignore[arg-type]


# ===========================================================================
# HandoffStatus
# ===========================================================================


class TestHandoffStatus:
    def test_values(self) -> None:
        assert [s.value for s in HandoffStatus] == ["pending", "completed", "timeout"]

    def test_terminal_states(self) -> None:
        assert HandoffStatus.PENDING.is_terminal is False
        assert HandoffStatus.COMPLETED.is_terminal is True
        assert HandoffStatus.TIMEOUT.is_terminal is True


# ===========================================================================
# DeliverableRequirement
# ===========================================================================


class TestDeliverableRequirement:
    def test_presence_only_by_default(self) -> None:
        requirement = DeliverableRequirement(name="report")
        assert requirement.validator is None

    def test_empty_name_rejected(self) -> None:
        with pytest.raises(ValueError):
            DeliverableRequirement(name="")

    def test_frozen(self) -> None:
        requirement = DeliverableRequirement(name="report")
        with pytest.raises(Exception):
            requirement.name = "other"  # type: ignore[misc]

    def test_validator_not_serialised(self) -> None:
        requirement = DeliverableRequirement(name="report", validator=len)
        assert requirement.model_dump() == {"name": "report"}


# ===========================================================================
# Handoff
# ===========================================================================


class TestHandoff:
    def test_defaults(self) -> None:
        handoff = _make_handoff()
        assert handoff.id
        assert handoff.status is HandoffStatus.PENDING
        assert handoff.completed_at is None
        assert handoff.timeout_at is None
        assert handoff.received is None
        assert handoff.required_names == ["report", "data"]

    def test_deadline(self) -> None:
        handoff = _make_handoff(timestamp=10_000, timeout_ms=2_500)
        assert handoff.deadline == 12_500

    def test_timeout_must_be_positive(self) -> None:
        with pytest.raises(ValueError):
            _make_handoff(timeout_ms=0)

    def test_duplicate_names_rejected(self) -> None:
        with pytest.raises(ValueError, match="Duplicate deliverable names"):
            _make_handoff(deliverables=[{"name": "x"}, {"name": "x"}])

    def test_json_uses_wire_names(self) -> None:
        handoff = _make_handoff()
        data = json.loads(handoff.to_json())
        assert data["from"] == "agent_a"
        assert data["to"] == "agent_b"
        assert data["timeoutMs"] == 1_000
        assert data["completedAt"] is None
        assert data["timeoutAt"] is None
        assert data["status"] == "pending"
        assert data["deliverables"] == [{"name": "report"}, {"name": "data"}]

    def test_from_json_restores_record_without_validators(self) -> None:
        handoff = _make_handoff()
        handoff.status = HandoffStatus.COMPLETED
        handoff.completed_at = handoff.timestamp + 5
        handoff.received = {"report": "ok", "data": [1, 2]}

        restored = Handoff.from_json(handoff.to_json())
        assert restored.id == handoff.id
        assert restored.status is HandoffStatus.COMPLETED
        assert restored.completed_at == handoff.completed_at
        assert restored.received == {"report": "ok", "data": [1, 2]}
        assert all(r.validator is None for r in restored.deliverables)

    def test_summary_line(self) -> None:
        handoff = _make_handoff()
        line = handoff.summary_line()
        assert handoff.id[:8] in line
        assert "agent_a -> agent_b" in line
        assert "pending" in line


# ===========================================================================
# ValidationReport
# ===========================================================================


class TestValidationReport:
    def test_defaults_to_complete(self) -> None:
        report = ValidationReport()
        assert report.complete is True
        assert report.missing == []
        assert report.errors == []
