"""Turns committed mutations into push events.

Delivery is best-effort and at-most-once: no retries, no buffering. Users that
are offline when an event fires get nothing and re-fetch on reconnect.
"""
from __future__ import annotations

import logging
from typing import Iterable

from direct_chat.application.dto.events import PushEvent
from direct_chat.application.ports.bus import EventPublisher
from direct_chat.application.repositories.participant import ParticipantReader
from direct_chat.domain.entities.chat import Chat
from direct_chat.domain.entities.message import Message
from direct_chat.domain.entities.user import User
from direct_chat.domain.value_objects.enums import EventType
from direct_chat.infrastructure.ws.hub import ConnectionHub

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """Routes events to the local hub, or through a fan-out bus when one is set.

    With a bus every process (this one included) receives the event from its
    subscriber and hands it to its own hub via :meth:`deliver`.
    """

    def __init__(self, hub: ConnectionHub, publisher: EventPublisher | None = None) -> None:
        self.hub = hub
        self.publisher = publisher

    async def message_created(self, message: Message, participants: ParticipantReader) -> None:
        """Notify the chat's participants; their ids are resolved here."""
        try:
            targets = frozenset(await participants.list_user_ids(message.chat_id))
        except Exception:
            logger.exception("Could not resolve participants of chat %d", message.chat_id)
            return
        event = PushEvent(
            type=EventType.NEW_MESSAGE,
            data={
                "chat_id": message.chat_id,
                "message": {
                    "id": message.id,
                    "chat_id": message.chat_id,
                    "author_id": message.author_id,
                    "content": message.content,
                    "seq": message.seq,
                    "created_at": message.created_at.isoformat(),
                },
            },
        )
        await self._emit(event, targets)

    async def chat_created(self, chat: Chat, participant_ids: Iterable[int]) -> None:
        targets = frozenset(participant_ids)
        event = PushEvent(
            type=EventType.NEW_CHAT,
            data={"chat_id": chat.id, "participant_ids": sorted(targets)},
        )
        await self._emit(event, targets)

    async def user_registered(self, user: User) -> None:
        event = PushEvent(
            type=EventType.NEW_USER,
            data={"user": {"id": user.id, "username": user.username, "email": user.email}},
        )
        await self._emit(event, None)

    async def deliver(self, event: PushEvent, target_user_ids: frozenset[int] | None) -> None:
        """Hand an event to the local hub."""
        delivered = await self.hub.broadcast(event, target_user_ids)
        logger.debug("Event %s delivered to %d connection(s)", event.type, delivered)

    async def _emit(self, event: PushEvent, targets: frozenset[int] | None) -> None:
        try:
            if self.publisher is not None:
                await self.publisher.publish(event, targets)
            else:
                await self.deliver(event, targets)
        except Exception:
            logger.exception("Failed to dispatch %s event", event.type)
