from __future__ import annotations

from typing import Protocol

from direct_chat.application.dto.events import PushEvent


class EventPublisher(Protocol):
    async def publish(
        self,
        event: PushEvent,
        target_user_ids: frozenset[int] | None,
    ) -> None: ...
