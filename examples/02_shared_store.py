#!/usr/bin/env python3
"""Example: Shared store — agent-handoff-coordinator

Two coordinators (standing in for two processes) share one store.  The
consumer watches for handoffs addressed to its agent and looks them up.
Set REDIS_URL to use Redis; otherwise an in-process shared store is used.

Usage:
    python examples/02_shared_store.py
    REDIS_URL=redis://localhost:6379/0 python examples/02_shared_store.py
"""
from __future__ import annotations

import asyncio

from agent_handoff_coordinator import (
    AgentCoordinator,
    AsyncInMemorySharedStore,
    CoordinatorConfig,
)


async def main() -> None:
    config = CoordinatorConfig.from_env()
    shared = None if config.redis_url else AsyncInMemorySharedStore()

    producer = AgentCoordinator.from_config(config, shared=shared)
    consumer = AgentCoordinator.from_config(config, shared=shared)
    print(f"producer connected: {await producer.initialize()}")
    print(f"consumer connected: {await consumer.initialize()}")

    requested: asyncio.Queue[str] = asyncio.Queue()
    await consumer.handoffs.watch("writer", requested.put_nowait)

    handoff_id = await producer.initiate_handoff("researcher", "writer", ["report"], 500)
    seen_id = await asyncio.wait_for(requested.get(), timeout=2.0)
    seen = await consumer.get_handoff(seen_id)
    print(f"consumer saw {seen.summary_line() if seen else None}")

    await asyncio.sleep(0.6)
    expired = await consumer.get_handoff(handoff_id)
    print(f"after deadline: {expired.status.value if expired else 'not found'}")

    await producer.shutdown()
    await consumer.shutdown()


if __name__ == "__main__":
    asyncio.run(main())
