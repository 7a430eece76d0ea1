from __future__ import annotations

from typing import Protocol

from direct_chat.domain.entities.user import User


class ParticipantReader(Protocol):
    async def is_participant(self, chat_id: int, user_id: int) -> bool: ...

    async def list_user_ids(self, chat_id: int) -> list[int]: ...

    async def list_users(self, chat_ids: list[int]) -> dict[int, list[User]]:
        """Participants of each chat, keyed by chat id."""
        ...


class ParticipantWriter(Protocol):
    async def add_many(self, chat_id: int, user_ids: list[int]) -> None: ...
