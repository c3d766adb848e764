#!/usr/bin/env python3
"""Example: Quickstart — agent-handoff-coordinator

Send a message, open a handoff with a validated deliverable, watch a
rejected completion, then complete it.

Usage:
    python examples/01_quickstart.py

Requirements:
    pip install agent-handoff-coordinator
"""
from __future__ import annotations

import asyncio

import agent_handoff_coordinator
from agent_handoff_coordinator import (
    AgentCoordinator,
    DeliverableRequirement,
    ValidationFailedError,
)


async def main() -> None:
    print(f"agent-handoff-coordinator version: {agent_handoff_coordinator.__version__}")

    async with AgentCoordinator() as coordinator:
        coordinator.on("handoff:completed", lambda h: print(f"  event: completed {h.id[:8]}"))

        # Step 1: Point-to-point message
        message_id = await coordinator.send_message(
            "researcher", "writer", {"topic": "Q3 revenue"}, priority="high"
        )
        message = await coordinator.get_message(message_id)
        print(f"Message {message_id[:8]}: {message.content if message else None}")

        # Step 2: Handoff with a validator on the deliverable
        handoff_id = await coordinator.initiate_handoff(
            "researcher",
            "writer",
            [DeliverableRequirement(name="report", validator=lambda text: len(text) > 0)],
            timeout_ms=10_000,
        )
        print(f"Handoff {handoff_id[:8]} pending")

        # Step 3: An empty report is rejected; the handoff stays pending
        try:
            await coordinator.complete_handoff(handoff_id, {"report": ""})
        except ValidationFailedError as exc:
            print(f"  rejected: {exc.report.errors}")

        # Step 4: A real report completes it
        handoff = await coordinator.complete_handoff(handoff_id, {"report": "Revenue grew 12%."})
        print(f"Handoff {handoff.id[:8]}: {handoff.status.value}")
        print(f"Status: {coordinator.get_status().to_dict()}")


if __name__ == "__main__":
    asyncio.run(main())
