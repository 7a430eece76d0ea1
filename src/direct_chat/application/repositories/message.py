from __future__ import annotations

from datetime import datetime
from typing import Protocol

from direct_chat.domain.entities.message import Message


class MessageReader(Protocol):
    async def list_messages(self, chat_id: int) -> list[Message]:
        """All committed messages of a chat joined with author username, by seq."""
        ...

    async def last_for_chats(self, chat_ids: list[int]) -> dict[int, Message]: ...


class MessageWriter(Protocol):
    async def append(
        self,
        chat_id: int,
        author_id: int,
        content: str,
        created_at: datetime,
    ) -> Message:
        """Take the next per-chat sequence number and insert the message."""
        ...
