"""Handoff lifecycle coordination.

Design
------
A handoff starts ``pending`` and ends in exactly one terminal state:
``completed`` (the receiving agent supplied every deliverable and each
validator accepted it) or ``timeout`` (the deadline passed first).

The coordinator owns the active set and one timer task per pending
handoff.  Every terminal transition pops the handoff from the active set
in the same scheduler turn in which it checks membership, so whichever of
completion and timeout gets there first wins and the other sees
:class:`HandoffNotFoundError` or a no-op.  Completion also cancels the
timer.

Terminal records are mirrored through the store with a longer TTL so
``get_handoff`` keeps answering after the handoff left the active set.
The local copy is dropped once that TTL passes.

Usage
-----
::

    coordinator = HandoffCoordinator(store, notifier)
    handoff_id = await coordinator.initiate_handoff(
        "planner", "writer", [DeliverableRequirement(name="report")], timeout_ms=60_000
    )
    handoff = await coordinator.complete_handoff(handoff_id, {"report": "..."})
"""
from __future__ import annotations

import asyncio
import inspect
import json
import logging
from typing import Any, Awaitable, Callable, Iterable, Mapping, Union

from agent_handoff_coordinator.events.notifier import CoordinatorEvent, EventNotifier
from agent_handoff_coordinator.handoff.models import (
    DeliverableRequirement,
    Handoff,
    HandoffStatus,
    ValidationReport,
)
from agent_handoff_coordinator.storage.async_base import Unsubscribe
from agent_handoff_coordinator.storage.dual import DualBackendStore
from agent_handoff_coordinator.timestamps import epoch_millis

logger = logging.getLogger(__name__)

HANDOFF_KEY_PREFIX = "handoff:"
HANDOFF_REQUEST_TYPE = "handoff_request"
DEFAULT_TIMEOUT_MS = 300_000

DeliverableSpec = Union[DeliverableRequirement, Mapping[str, Any], str]
HandoffWatcher = Callable[[str], Union[Awaitable[None], None]]


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class HandoffNotFoundError(KeyError):
    """Raised when a handoff id is not in the active set."""

    def __init__(self, handoff_id: str) -> None:
        self.handoff_id = handoff_id
        super().__init__(f"Handoff {handoff_id!r} not found.")


class ValidationFailedError(ValueError):
    """Raised by ``complete_handoff`` when deliverables are incomplete or invalid.

    The handoff stays pending; its timer keeps running.
    """

    def __init__(self, handoff_id: str, report: ValidationReport) -> None:
        self.handoff_id = handoff_id
        self.report = report
        super().__init__(
            f"Handoff {handoff_id!r} validation failed: "
            f"missing={report.missing!r}, errors={report.errors!r}"
        )


def _coerce_requirement(spec: DeliverableSpec) -> DeliverableRequirement:
    if isinstance(spec, DeliverableRequirement):
        return spec
    if isinstance(spec, str):
        return DeliverableRequirement(name=spec)
    return DeliverableRequirement.model_validate(dict(spec))


# ---------------------------------------------------------------------------
# HandoffCoordinator
# ---------------------------------------------------------------------------


class HandoffCoordinator:
    """State machine for handoffs: pending -> completed | timeout.

    Parameters
    ----------
    store:
        Store the handoff records are cached in and mirrored through.
    notifier:
        Receives ``handoff:initiated``, ``handoff:completed`` and
        ``handoff:timeout`` events.
    default_timeout_ms:
        Timeout used when ``initiate_handoff`` is not given one.
        Default: 300000 (five minutes).
    pending_ttl_seconds:
        Shared-store retention while pending.  Default: 3600.
    terminal_ttl_seconds:
        Retention once terminal, in the shared store and in the local
        cache.  Default: 86400.
    channel:
        Notification channel for handoff requests.
    """

    def __init__(
        self,
        store: DualBackendStore,
        notifier: EventNotifier,
        *,
        default_timeout_ms: int = DEFAULT_TIMEOUT_MS,
        pending_ttl_seconds: int = 3600,
        terminal_ttl_seconds: int = 86400,
        channel: str = "agent:handoffs",
    ) -> None:
        if default_timeout_ms <= 0:
            raise ValueError(f"default_timeout_ms must be positive, got {default_timeout_ms!r}.")
        self._store = store
        self._notifier = notifier
        self._default_timeout_ms = default_timeout_ms
        self._pending_ttl_seconds = pending_ttl_seconds
        self._terminal_ttl_seconds = terminal_ttl_seconds
        self._channel = channel
        self._active: dict[str, Handoff] = {}
        self._timers: dict[str, asyncio.Task[None]] = {}

    @staticmethod
    def _key(handoff_id: str) -> str:
        return f"{HANDOFF_KEY_PREFIX}{handoff_id}"

    @property
    def active_count(self) -> int:
        """Number of handoffs currently pending in this process."""
        return len(self._active)

    def list_active(self, to_agent: str | None = None) -> list[Handoff]:
        """Return pending handoffs, optionally only those addressed to ``to_agent``."""
        return [
            handoff
            for handoff in self._active.values()
            if to_agent is None or handoff.to_agent == to_agent
        ]

    # ------------------------------------------------------------------
    # Lifecycle operations
    # ------------------------------------------------------------------

    async def initiate_handoff(
        self,
        from_agent: str,
        to_agent: str,
        deliverables: Iterable[DeliverableSpec],
        timeout_ms: int | None = None,
    ) -> str:
        """Open a pending handoff and start its timeout.

        Parameters
        ----------
        from_agent:
            The agent handing work off.
        to_agent:
            The agent expected to supply the deliverables.
        deliverables:
            Requirements as :class:`DeliverableRequirement` instances,
            mappings with ``name`` (and optionally ``validator``), or bare
            names.
        timeout_ms:
            Milliseconds until the handoff times out.  Defaults to the
            coordinator's ``default_timeout_ms``.

        Returns
        -------
        str
            The new handoff id.

        Raises
        ------
        ValueError
            If ``timeout_ms`` is not positive or deliverable names repeat.
        """
        handoff = Handoff(
            from_agent=from_agent,
            to_agent=to_agent,
            deliverables=[_coerce_requirement(spec) for spec in deliverables],
            timeout_ms=self._default_timeout_ms if timeout_ms is None else timeout_ms,
        )
        self._active[handoff.id] = handoff
        self._schedule_timeout(handoff)
        logger.info(
            "HandoffCoordinator: initiated %s %s -> %s (timeout %dms)",
            handoff.id,
            from_agent,
            to_agent,
            handoff.timeout_ms,
        )
        self._notifier.emit(CoordinatorEvent.HANDOFF_INITIATED, handoff)

        await self._store.put(self._key(handoff.id), handoff, self._pending_ttl_seconds)
        await self._store.publish(
            self._channel,
            {"type": HANDOFF_REQUEST_TYPE, "handoffId": handoff.id, "agent": to_agent},
        )
        return handoff.id

    async def validate_deliverables(
        self, handoff_id: str, received: Mapping[str, Any]
    ) -> ValidationReport:
        """Check ``received`` against the handoff's requirements.

        A requirement is missing when its name is absent from ``received``
        or maps to None.  Present values are passed to the requirement's
        validator, if any.  A falsy result is reported as
        ``"<name> failed validation"``; an exception as
        ``"<name> validation error: <message>"``.  Handoff state is not
        touched.

        Raises
        ------
        HandoffNotFoundError
            If ``handoff_id`` is not pending in this coordinator.
        """
        handoff = self._active.get(handoff_id)
        if handoff is None:
            raise HandoffNotFoundError(handoff_id)

        report = ValidationReport()
        for requirement in handoff.deliverables:
            value = received.get(requirement.name)
            if value is None:
                report.missing.append(requirement.name)
                continue
            if requirement.validator is None:
                continue
            try:
                outcome = requirement.validator(value)
                if inspect.isawaitable(outcome):
                    outcome = await outcome
            except Exception as exc:
                report.errors.append(f"{requirement.name} validation error: {exc}")
                continue
            if not outcome:
                report.errors.append(f"{requirement.name} failed validation")

        report.complete = not report.missing and not report.errors
        return report

    async def complete_handoff(self, handoff_id: str, received: Mapping[str, Any]) -> Handoff:
        """Validate ``received`` and, if acceptable, complete the handoff.

        Returns
        -------
        Handoff
            The completed record, with ``received`` holding the delivered
            values.

        Raises
        ------
        HandoffNotFoundError
            If the handoff is not pending (unknown, already completed, or
            timed out, including while validators were running).
        ValidationFailedError
            If a deliverable is missing or rejected.  The handoff stays
            pending and may be completed again before it times out.
        """
        report = await self.validate_deliverables(handoff_id, received)
        # Validators may have suspended; the timeout can win in the meantime.
        if handoff_id not in self._active:
            raise HandoffNotFoundError(handoff_id)
        if not report.complete:
            logger.debug(
                "HandoffCoordinator: completion of %s rejected (missing=%r, errors=%r)",
                handoff_id,
                report.missing,
                report.errors,
            )
            raise ValidationFailedError(handoff_id, report)

        handoff = self._active.pop(handoff_id)
        self._cancel_timer(handoff_id)
        handoff.status = HandoffStatus.COMPLETED
        handoff.completed_at = epoch_millis()
        handoff.received = dict(received)

        await self._put_terminal(handoff)
        logger.info("HandoffCoordinator: completed %s", handoff_id)
        self._notifier.emit(CoordinatorEvent.HANDOFF_COMPLETED, handoff)
        return handoff

    async def _put_terminal(self, handoff: Handoff) -> None:
        await self._store.put(
            self._key(handoff.id),
            handoff,
            self._terminal_ttl_seconds,
            local_ttl_seconds=self._terminal_ttl_seconds,
        )

    async def get_handoff(self, handoff_id: str) -> Handoff | None:
        """Return the pending handoff, else its stored record, else None."""
        handoff = self._active.get(handoff_id)
        if handoff is not None:
            return handoff
        return await self._store.get(self._key(handoff_id), Handoff)

    async def watch(self, agent_id: str, handler: HandoffWatcher) -> Unsubscribe | None:
        """Call ``handler(handoff_id)`` for each handoff requested of ``agent_id``.

        Returns None when the store has no reachable shared backend.
        """

        async def on_notification(raw: str) -> None:
            try:
                notice = json.loads(raw)
            except json.JSONDecodeError:
                logger.warning("HandoffCoordinator: ignoring malformed notification %r", raw)
                return
            if notice.get("type") != HANDOFF_REQUEST_TYPE or notice.get("agent") != agent_id:
                return
            result = handler(str(notice["handoffId"]))
            if inspect.isawaitable(result):
                await result

        return await self._store.subscribe(self._channel, on_notification)

    async def shutdown(self) -> None:
        """Cancel every outstanding timer.  Pending handoffs stay pending."""
        timers = list(self._timers.values())
        self._timers.clear()
        for task in timers:
            task.cancel()
        await asyncio.gather(*timers, return_exceptions=True)
        if timers:
            logger.info(
                "HandoffCoordinator: cancelled %d timer(s), %d handoff(s) left pending",
                len(timers),
                len(self._active),
            )

    # ------------------------------------------------------------------
    # Timers
    # ------------------------------------------------------------------

    def _schedule_timeout(self, handoff: Handoff) -> None:
        if handoff.id in self._timers:
            raise RuntimeError(f"Timeout already scheduled for handoff {handoff.id!r}.")
        self._timers[handoff.id] = asyncio.create_task(
            self._expire_after(handoff.id, handoff.timeout_ms / 1000),
            name=f"handoff-timeout-{handoff.id}",
        )

    def _cancel_timer(self, handoff_id: str) -> None:
        task = self._timers.pop(handoff_id, None)
        if task is not None and not task.done():
            task.cancel()

    async def _expire_after(self, handoff_id: str, delay_seconds: float) -> None:
        await asyncio.sleep(delay_seconds)
        self._timers.pop(handoff_id, None)
        await self._handle_timeout(handoff_id)

    async def _handle_timeout(self, handoff_id: str) -> bool:
        """Move a still-pending handoff to ``timeout``.  Returns False as a no-op."""
        handoff = self._active.pop(handoff_id, None)
        if handoff is None:
            logger.debug(
                "HandoffCoordinator: timer for %s fired after it left the active set", handoff_id
            )
            return False
        handoff.status = HandoffStatus.TIMEOUT
        handoff.timeout_at = epoch_millis()
        logger.warning(
            "HandoffCoordinator: %s timed out after %dms (%s -> %s)",
            handoff_id,
            handoff.timeout_ms,
            handoff.from_agent,
            handoff.to_agent,
        )
        self._notifier.emit(CoordinatorEvent.HANDOFF_TIMEOUT, handoff)
        await self._put_terminal(handoff)
        return True

    def __repr__(self) -> str:
        return f"HandoffCoordinator(active={len(self._active)}, timers={len(self._timers)})"


__all__ = [
    "DEFAULT_TIMEOUT_MS",
    "HANDOFF_KEY_PREFIX",
    "DeliverableSpec",
    "HandoffCoordinator",
    "HandoffNotFoundError",
    "HandoffWatcher",
    "ValidationFailedError",
]
