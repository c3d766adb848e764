"""Test that the quickstart API works for agent-handoff-coordinator."""
from __future__ import annotations

import pytest


def test_quickstart_import() -> None:
    import agent_handoff_coordinator

    assert agent_handoff_coordinator.__version__ == "0.1.0"


@pytest.mark.asyncio
async def test_quickstart_message_round_trip() -> None:
    from agent_handoff_coordinator import AgentCoordinator

    async with AgentCoordinator() as coordinator:
        message_id = await coordinator.send_message("planner", "writer", "draft the intro", "low")
        message = await coordinator.get_message(message_id)

    assert message is not None
    assert message.from_agent == "planner"
    assert message.to_agent == "writer"
    assert message.content == "draft the intro"
    assert message.priority.value == "low"


@pytest.mark.asyncio
async def test_quickstart_handoff() -> None:
    from agent_handoff_coordinator import AgentCoordinator, HandoffStatus

    async with AgentCoordinator() as coordinator:
        handoff_id = await coordinator.initiate_handoff("planner", "writer", ["outline"])
        handoff = await coordinator.complete_handoff(handoff_id, {"outline": ["intro", "body"]})

    assert handoff.status is HandoffStatus.COMPLETED
    assert handoff.received == {"outline": ["intro", "body"]}
