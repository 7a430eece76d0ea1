"""Shared test fixtures."""
from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest
from starlette.websockets import WebSocketState

from direct_chat.application.exceptions import ConflictError
from direct_chat.domain.entities.chat import Chat
from direct_chat.domain.entities.message import Message
from direct_chat.domain.entities.user import User
from direct_chat.domain.value_objects.pair import UserPair


class StepClock:
    """Deterministic clock: every call is one second after the previous one."""

    def __init__(self, start: datetime | None = None) -> None:
        self._current = start or datetime(2024, 1, 1, tzinfo=timezone.utc)

    def now(self) -> datetime:
        self._current += timedelta(seconds=1)
        return self._current


@dataclass
class FakeStore:
    """Shared in-memory tables; several FakeUoW instances may point at one store."""

    users: dict[int, User] = field(default_factory=dict)
    password_hashes: dict[int, str] = field(default_factory=dict)
    chats: dict[int, Chat] = field(default_factory=dict)
    pair_keys: dict[tuple[int, int], int] = field(default_factory=dict)
    participants: list[tuple[int, int]] = field(default_factory=list)
    messages: list[Message] = field(default_factory=list)
    last_seq: dict[int, int] = field(default_factory=dict)
    next_user_id: int = 1
    next_chat_id: int = 1
    next_message_id: int = 1

    def add_user(self, username: str, email: str | None = None, password_hash: str = "") -> User:
        user = User(id=self.next_user_id, username=username, email=email or f"{username}@example.com")
        self.next_user_id += 1
        self.users[user.id] = user
        self.password_hashes[user.id] = password_hash
        return user

    def add_chat(self, *user_ids: int, created_at: datetime | None = None) -> Chat:
        chat = Chat(id=self.next_chat_id, created_at=created_at or datetime.now(timezone.utc))
        self.next_chat_id += 1
        self.chats[chat.id] = chat
        self.last_seq[chat.id] = 0
        for uid in user_ids:
            self.participants.append((chat.id, uid))
        return chat

    def member_ids(self, chat_id: int) -> set[int]:
        return {uid for cid, uid in self.participants if cid == chat_id}


@dataclass
class FakeUserReader:
    _store: FakeStore

    async def get_by_id(self, user_id: int) -> User | None:
        return self._store.users.get(user_id)

    async def list_all(self) -> list[User]:
        return sorted(self._store.users.values(), key=lambda u: u.id)

    async def get_credentials(self, email: str) -> tuple[User, str] | None:
        for user in self._store.users.values():
            if user.email == email:
                return user, self._store.password_hashes[user.id]
        return None


@dataclass
class FakeUserWriter:
    _store: FakeStore

    async def create(self, username: str, email: str, password_hash: str) -> User:
        if any(u.email == email for u in self._store.users.values()):
            raise ConflictError("Email already registered")
        return self._store.add_user(username, email, password_hash)


@dataclass
class FakeChatReader:
    _store: FakeStore

    async def get_by_id(self, chat_id: int) -> Chat | None:
        return self._store.chats.get(chat_id)

    async def find_for_pair(self, pair: UserPair) -> Chat | None:
        # A real query suspends here; give concurrent callers a chance to interleave.
        await asyncio.sleep(0)
        wanted = {pair.low, pair.high}
        for chat_id in sorted(self._store.chats):
            if self._store.member_ids(chat_id) == wanted:
                return self._store.chats[chat_id]
        return None

    async def get_by_pair_key(self, pair: UserPair) -> Chat | None:
        chat_id = self._store.pair_keys.get(pair.as_tuple())
        return self._store.chats.get(chat_id) if chat_id is not None else None

    async def list_for_user(self, user_id: int) -> list[Chat]:
        ids = sorted({cid for cid, uid in self._store.participants if uid == user_id})
        return [self._store.chats[i] for i in ids]


@dataclass
class FakeChatWriter:
    _store: FakeStore

    async def create(self, created_at: datetime) -> Chat:
        return self._store.add_chat(created_at=created_at)

    async def create_for_pair(self, pair: UserPair, created_at: datetime) -> Chat | None:
        await asyncio.sleep(0)
        if pair.as_tuple() in self._store.pair_keys:
            return None
        chat = self._store.add_chat(created_at=created_at)
        self._store.pair_keys[pair.as_tuple()] = chat.id
        return chat


@dataclass
class FakeParticipantReader:
    _store: FakeStore

    async def is_participant(self, chat_id: int, user_id: int) -> bool:
        return user_id in self._store.member_ids(chat_id)

    async def list_user_ids(self, chat_id: int) -> list[int]:
        return sorted(self._store.member_ids(chat_id))

    async def list_users(self, chat_ids: list[int]) -> dict[int, list[User]]:
        return {
            chat_id: [self._store.users[uid] for uid in sorted(self._store.member_ids(chat_id))]
            for chat_id in chat_ids
            if self._store.member_ids(chat_id)
        }


@dataclass
class FakeParticipantWriter:
    _store: FakeStore

    async def add_many(self, chat_id: int, user_ids: list[int]) -> None:
        for uid in user_ids:
            self._store.participants.append((chat_id, uid))


@dataclass
class FakeMessageReader:
    _store: FakeStore

    def _with_username(self, msg: Message) -> Message:
        user = self._store.users.get(msg.author_id)
        return Message(
            id=msg.id,
            chat_id=msg.chat_id,
            author_id=msg.author_id,
            content=msg.content,
            seq=msg.seq,
            created_at=msg.created_at,
            username=user.username if user else None,
        )

    async def list_messages(self, chat_id: int) -> list[Message]:
        rows = [m for m in self._store.messages if m.chat_id == chat_id]
        rows.sort(key=lambda m: (m.seq, m.id))
        return [self._with_username(m) for m in rows]

    async def last_for_chats(self, chat_ids: list[int]) -> dict[int, Message]:
        last: dict[int, Message] = {}
        for msg in self._store.messages:
            if msg.chat_id in chat_ids and (msg.chat_id not in last or msg.seq > last[msg.chat_id].seq):
                last[msg.chat_id] = msg
        return {chat_id: self._with_username(m) for chat_id, m in last.items()}


@dataclass
class FakeMessageWriter:
    _store: FakeStore

    async def append(
        self,
        chat_id: int,
        author_id: int,
        content: str,
        created_at: datetime,
    ) -> Message:
        seq = self._store.last_seq.get(chat_id, 0) + 1
        self._store.last_seq[chat_id] = seq
        msg = Message(
            id=self._store.next_message_id,
            chat_id=chat_id,
            author_id=author_id,
            content=content,
            seq=seq,
            created_at=created_at,
        )
        self._store.next_message_id += 1
        self._store.messages.append(msg)
        return msg


@dataclass
class FakeUoW:
    """In-memory UoW for unit tests."""
    store: FakeStore = field(default_factory=FakeStore)
    commits: int = 0
    rollbacks: int = 0

    def __post_init__(self) -> None:
        self.users = FakeUserReader(self.store)
        self.users_w = FakeUserWriter(self.store)
        self.chats = FakeChatReader(self.store)
        self.chats_w = FakeChatWriter(self.store)
        self.participants = FakeParticipantReader(self.store)
        self.participants_w = FakeParticipantWriter(self.store)
        self.messages = FakeMessageReader(self.store)
        self.messages_w = FakeMessageWriter(self.store)

    @property
    def _committed(self) -> bool:
        return self.commits > 0

    async def flush(self) -> None:
        pass

    async def commit(self) -> None:
        self.commits += 1

    async def rollback(self) -> None:
        self.rollbacks += 1


class FakeSocket:
    """Stand-in for a Starlette WebSocket as the ConnectionHub sees it."""

    def __init__(self, *, fail: bool = False, gate: asyncio.Event | None = None) -> None:
        self.client_state = WebSocketState.CONNECTED
        self.application_state = WebSocketState.CONNECTED
        self.sent: list[str] = []
        self.closed_with: tuple[int, str | None] | None = None
        self._fail = fail
        self._gate = gate

    async def send_text(self, data: str) -> None:
        if self._gate is not None:
            await self._gate.wait()
        if self._fail:
            raise RuntimeError("socket is gone")
        self.sent.append(data)

    async def close(self, code: int = 1000, reason: str | None = None) -> None:
        self.closed_with = (code, reason)
        self.client_state = WebSocketState.DISCONNECTED

    def drop(self) -> None:
        """Simulate the peer going away without the server noticing yet."""
        self.client_state = WebSocketState.DISCONNECTED

    @property
    def frames(self) -> list[dict[str, Any]]:
        return [json.loads(raw) for raw in self.sent]


@pytest.fixture
def store() -> FakeStore:
    s = FakeStore()
    s.add_user("alice")
    s.add_user("bob")
    s.add_user("carol")
    return s


@pytest.fixture
def uow(store: FakeStore) -> FakeUoW:
    return FakeUoW(store)


@pytest.fixture
def clock() -> StepClock:
    return StepClock()
