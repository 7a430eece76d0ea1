from __future__ import annotations

from datetime import datetime
from typing import Protocol

from direct_chat.domain.entities.chat import Chat
from direct_chat.domain.value_objects.pair import UserPair


class ChatReader(Protocol):
    async def get_by_id(self, chat_id: int) -> Chat | None: ...

    async def find_for_pair(self, pair: UserPair) -> Chat | None:
        """Lowest-id chat whose participant set is exactly the pair."""
        ...

    async def get_by_pair_key(self, pair: UserPair) -> Chat | None: ...

    async def list_for_user(self, user_id: int) -> list[Chat]: ...


class ChatWriter(Protocol):
    async def create(self, created_at: datetime) -> Chat:
        """Insert a chat with no pair key."""
        ...

    async def create_for_pair(self, pair: UserPair, created_at: datetime) -> Chat | None:
        """Insert a chat keyed by ``pair``. Returns None if the key is already taken."""
        ...
