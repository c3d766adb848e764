"""Unit tests for agent_handoff_coordinator.coordinator.AgentCoordinator."""
from __future__ import annotations

import asyncio
import time

import pytest

from agent_handoff_coordinator import (
    AgentCoordinator,
    AsyncInMemorySharedStore,
    AsyncRedisSharedStore,
    CoordinatorConfig,
    DeliverableRequirement,
    Handoff,
    HandoffNotFoundError,
    HandoffStatus,
    ValidationFailedError,
)
from agent_handoff_coordinator.storage.async_base import StoreUnavailableError


class _RefusingStore(AsyncInMemorySharedStore):
    async def connect(self) -> None:
        raise StoreUnavailableError("connect", "connection refused")


class TestAgentCoordinatorConstruction:
    def test_default_is_local_only(self) -> None:
        coordinator = AgentCoordinator()
        assert coordinator.store.connected is False
        assert coordinator.config == CoordinatorConfig()

    def test_from_config_with_redis_url_uses_redis_backend(self) -> None:
        config = CoordinatorConfig(redis_url="redis://localhost:6399/0", key_prefix="t:")
        coordinator = AgentCoordinator.from_config(config)
        assert isinstance(coordinator.store._shared, AsyncRedisSharedStore)

    def test_from_config_explicit_shared_wins(self) -> None:
        shared = AsyncInMemorySharedStore()
        config = CoordinatorConfig(redis_url="redis://localhost:6399/0")
        coordinator = AgentCoordinator.from_config(config, shared=shared)
        assert coordinator.store._shared is shared

    def test_from_config_without_url_is_local_only(self) -> None:
        coordinator = AgentCoordinator.from_config(CoordinatorConfig())
        assert coordinator.store._shared is None


class TestAgentCoordinatorOperations:
    @pytest.mark.asyncio
    async def test_status_counts(self) -> None:
        async with AgentCoordinator() as coordinator:
            await coordinator.send_message("a", "b", "one")
            await coordinator.send_message("a", "b", "two")
            handoff_id = await coordinator.initiate_handoff("a", "b", ["report"])
            await coordinator.initiate_handoff("a", "c", ["report"])
            await coordinator.complete_handoff(handoff_id, {"report": "done"})

            status = coordinator.get_status()
            assert status.active_handoffs == 1
            assert status.pending_messages == 2
            assert status.store_connected is False
            data = status.to_dict()
            assert data["activeHandoffs"] == 1
            assert data["pendingMessages"] == 2
            assert data["storeConnected"] is False
            assert data["timestamp"] > 0

    @pytest.mark.asyncio
    async def test_store_connected_reported(self) -> None:
        coordinator = AgentCoordinator.from_config(
            CoordinatorConfig(), shared=AsyncInMemorySharedStore()
        )
        assert await coordinator.initialize() is True
        assert coordinator.get_status().store_connected is True
        await coordinator.shutdown()
        assert coordinator.get_status().store_connected is False

    @pytest.mark.asyncio
    async def test_config_default_timeout_applies(self) -> None:
        config = CoordinatorConfig(default_timeout_ms=40)
        async with AgentCoordinator(config=config) as coordinator:
            handoff_id = await coordinator.initiate_handoff("a", "b", ["report"])
            await asyncio.sleep(0.08)
            handoff = await coordinator.get_handoff(handoff_id)
            assert handoff is not None
            assert handoff.status is HandoffStatus.TIMEOUT

    @pytest.mark.asyncio
    async def test_events_in_transition_order(self) -> None:
        events: list[str] = []
        async with AgentCoordinator() as coordinator:
            for name in ("message:sent", "handoff:initiated", "handoff:completed", "handoff:timeout"):
                coordinator.on(name, lambda record, name=name: events.append(name))
            await coordinator.send_message("a", "b", "hi")
            first = await coordinator.initiate_handoff("a", "b", ["report"])
            await coordinator.initiate_handoff("a", "b", ["report"], timeout_ms=20)
            await coordinator.complete_handoff(first, {"report": "ok"})
            await asyncio.sleep(0.05)
        assert events == [
            "message:sent",
            "handoff:initiated",
            "handoff:initiated",
            "handoff:completed",
            "handoff:timeout",
        ]

    @pytest.mark.asyncio
    async def test_validation_scenario(self) -> None:
        async with AgentCoordinator() as coordinator:
            handoff_id = await coordinator.initiate_handoff(
                "agentA",
                "agentB",
                [DeliverableRequirement(name="report", validator=lambda x: len(x) > 0)],
            )
            report = await coordinator.validate_deliverables(handoff_id, {"report": ""})
            assert report.complete is False

            with pytest.raises(ValidationFailedError) as exc_info:
                await coordinator.complete_handoff(handoff_id, {"report": ""})
            assert any("report" in e for e in exc_info.value.report.errors)

            handoff = await coordinator.complete_handoff(handoff_id, {"report": "ok"})
            assert isinstance(handoff, Handoff)
            assert handoff.status is HandoffStatus.COMPLETED

            with pytest.raises(HandoffNotFoundError):
                await coordinator.complete_handoff(handoff_id, {"report": "ok"})

    @pytest.mark.asyncio
    async def test_shutdown_leaves_no_running_timers(self) -> None:
        coordinator = AgentCoordinator()
        await coordinator.initialize()
        for _ in range(5):
            await coordinator.initiate_handoff("a", "b", ["report"])
        await coordinator.shutdown()
        assert coordinator.handoffs._timers == {}


class TestAgentCoordinatorDegraded:
    @pytest.mark.asyncio
    async def test_refused_store_runs_local_only(self) -> None:
        coordinator = AgentCoordinator.from_config(CoordinatorConfig(), shared=_RefusingStore())
        assert await coordinator.initialize() is False

        started = time.monotonic()
        message_id = await coordinator.send_message("a", "b", "hello")
        handoff_id = await coordinator.initiate_handoff("a", "b", ["report"])
        handoff = await coordinator.complete_handoff(handoff_id, {"report": "ok"})
        assert time.monotonic() - started < 1.0

        assert (await coordinator.get_message(message_id)) is not None
        assert handoff.status is HandoffStatus.COMPLETED
        assert coordinator.get_status().store_connected is False
        await coordinator.shutdown()

    @pytest.mark.asyncio
    async def test_redis_url_without_scheme_runs_local_only(self) -> None:
        coordinator = AgentCoordinator.from_config(CoordinatorConfig(redis_url="localhost:6379"))
        assert await coordinator.initialize() is False

        handoff_id = await coordinator.initiate_handoff("a", "b", ["report"])
        handoff = await coordinator.complete_handoff(handoff_id, {"report": "ok"})
        assert handoff.status is HandoffStatus.COMPLETED
        assert coordinator.get_status().store_connected is False
        await coordinator.shutdown()

    @pytest.mark.asyncio
    async def test_two_coordinators_share_state_through_store(self) -> None:
        shared = AsyncInMemorySharedStore()
        producer = AgentCoordinator.from_config(CoordinatorConfig(), shared=shared)
        consumer = AgentCoordinator.from_config(CoordinatorConfig(), shared=shared)
        await producer.initialize()
        await consumer.initialize()

        inbox: list[str] = []
        await consumer.messages.watch("agentB", inbox.append)
        message_id = await producer.send_message("agentA", "agentB", {"hello": "world"})
        assert inbox == [message_id]

        message = await consumer.get_message(message_id)
        assert message is not None
        assert message.content == {"hello": "world"}

        await producer.shutdown()
        await consumer.shutdown()
