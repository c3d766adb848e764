"""Synchronous in-process observer for coordinator lifecycle events.

Handlers are kept per event name and invoked in registration order, on
the emitting call's stack, with the record the coordinator just
transitioned.  A handler that raises is logged and skipped; the remaining
handlers still run and the emitting operation is unaffected.

Classes
-------
- CoordinatorEvent  — enum of the event names the coordinator emits
- EventNotifier     — registry of named-event handler lists
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable

logger = logging.getLogger(__name__)

EventHandler = Callable[[Any], None]


class CoordinatorEvent(str, Enum):
    """Lifecycle events emitted by the message channel and handoff coordinator."""

    MESSAGE_SENT = "message:sent"
    HANDOFF_INITIATED = "handoff:initiated"
    HANDOFF_COMPLETED = "handoff:completed"
    HANDOFF_TIMEOUT = "handoff:timeout"


class EventNotifier:
    """Registry of handlers for :class:`CoordinatorEvent` names.

    Example
    -------
    ::

        notifier = EventNotifier()
        unsubscribe = notifier.on("handoff:timeout", lambda handoff: print(handoff.id))
        ...
        unsubscribe()
    """

    def __init__(self) -> None:
        self._handlers: dict[CoordinatorEvent, list[EventHandler]] = {
            event: [] for event in CoordinatorEvent
        }

    @staticmethod
    def _resolve(event: CoordinatorEvent | str) -> CoordinatorEvent:
        try:
            return CoordinatorEvent(event)
        except ValueError:
            known = ", ".join(e.value for e in CoordinatorEvent)
            raise ValueError(f"Unknown event {event!r}; expected one of: {known}.") from None

    def on(self, event: CoordinatorEvent | str, handler: EventHandler) -> Callable[[], None]:
        """Register ``handler`` for ``event`` and return a callable that removes it.

        Raises
        ------
        ValueError
            If ``event`` is not one of the coordinator's event names.
        """
        resolved = self._resolve(event)
        self._handlers[resolved].append(handler)

        def unsubscribe() -> None:
            self.off(resolved, handler)

        return unsubscribe

    def off(self, event: CoordinatorEvent | str, handler: EventHandler) -> bool:
        """Remove the first registration of ``handler``.  Returns True if found."""
        handlers = self._handlers[self._resolve(event)]
        if handler in handlers:
            handlers.remove(handler)
            return True
        return False

    def emit(self, event: CoordinatorEvent | str, record: Any) -> int:
        """Call every handler for ``event`` with ``record``.

        Returns
        -------
        int
            Number of handlers that ran without raising.
        """
        resolved = self._resolve(event)
        delivered = 0
        for handler in list(self._handlers[resolved]):
            try:
                handler(record)
            except Exception:
                logger.exception("EventNotifier: handler %r for %s failed", handler, resolved.value)
                continue
            delivered += 1
        return delivered

    def handler_count(self, event: CoordinatorEvent | str) -> int:
        """Number of handlers registered for ``event``."""
        return len(self._handlers[self._resolve(event)])

    def __repr__(self) -> str:
        counts = ", ".join(f"{e.value}={len(h)}" for e, h in self._handlers.items())
        return f"EventNotifier({counts})"


__all__ = ["CoordinatorEvent", "EventHandler", "EventNotifier"]
