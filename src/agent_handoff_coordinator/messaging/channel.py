"""Point-to-point messaging between named agents.

Classes
-------
- MessageChannel  — send, look up, and watch for messages
"""
from __future__ import annotations

import inspect
import json
import logging
from typing import Any, Awaitable, Callable, Union

from agent_handoff_coordinator.events.notifier import CoordinatorEvent, EventNotifier
from agent_handoff_coordinator.messaging.models import Message, MessagePriority
from agent_handoff_coordinator.storage.async_base import Unsubscribe
from agent_handoff_coordinator.storage.dual import DualBackendStore

logger = logging.getLogger(__name__)

MESSAGE_KEY_PREFIX = "message:"
NEW_MESSAGE_TYPE = "new_message"

MessageWatcher = Callable[[str], Union[Awaitable[None], None]]


class MessageChannel:
    """Send and retrieve messages through a :class:`DualBackendStore`.

    Parameters
    ----------
    store:
        The store messages are cached in and mirrored through.
    notifier:
        Receives a ``message:sent`` event for every message.
    ttl_seconds:
        Retention window for the shared-store copy.  Default: 3600.
    channel:
        Notification channel for new-message announcements.
    """

    def __init__(
        self,
        store: DualBackendStore,
        notifier: EventNotifier,
        *,
        ttl_seconds: int = 3600,
        channel: str = "agent:messages",
    ) -> None:
        self._store = store
        self._notifier = notifier
        self._ttl_seconds = ttl_seconds
        self._channel = channel

    @staticmethod
    def _key(message_id: str) -> str:
        return f"{MESSAGE_KEY_PREFIX}{message_id}"

    async def send_message(
        self,
        from_agent: str,
        to_agent: str,
        content: Any,
        priority: MessagePriority | str = MessagePriority.NORMAL,
    ) -> str:
        """Create a message, store it, announce it, and return its id.

        Store failures are absorbed by the store; from the caller's side
        this only fails on an unknown ``priority``.

        Raises
        ------
        ValueError
            If ``priority`` is not low, normal, or high.
        """
        message = Message(
            from_agent=from_agent,
            to_agent=to_agent,
            content=content,
            priority=MessagePriority(priority),
        )
        await self._store.put(self._key(message.id), message, self._ttl_seconds)
        await self._store.publish(
            self._channel,
            {"type": NEW_MESSAGE_TYPE, "agent": to_agent, "messageId": message.id},
        )
        logger.debug(
            "MessageChannel: %s -> %s message %s (%s)",
            from_agent,
            to_agent,
            message.id,
            message.priority.value,
        )
        self._notifier.emit(CoordinatorEvent.MESSAGE_SENT, message)
        return message.id

    async def get_message(self, message_id: str) -> Message | None:
        """Return the message with ``message_id``, or None if unknown."""
        return await self._store.get(self._key(message_id), Message)

    def pending_count(self) -> int:
        """Number of messages cached in this process."""
        return self._store.count(MESSAGE_KEY_PREFIX)

    async def watch(self, agent_id: str, handler: MessageWatcher) -> Unsubscribe | None:
        """Call ``handler(message_id)`` for each new message addressed to ``agent_id``.

        Notifications arrive through the shared store, so messages sent
        from other processes are seen too.  Returns None (and never calls
        ``handler``) when the store has no reachable shared backend.
        """

        async def on_notification(raw: str) -> None:
            try:
                notice = json.loads(raw)
            except json.JSONDecodeError:
                logger.warning("MessageChannel: ignoring malformed notification %r", raw)
                return
            if notice.get("type") != NEW_MESSAGE_TYPE or notice.get("agent") != agent_id:
                return
            result = handler(str(notice["messageId"]))
            if inspect.isawaitable(result):
                await result

        return await self._store.subscribe(self._channel, on_notification)


__all__ = ["MESSAGE_KEY_PREFIX", "MessageChannel", "MessageWatcher"]
