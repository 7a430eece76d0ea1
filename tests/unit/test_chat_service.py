from __future__ import annotations

import asyncio
from datetime import datetime, timezone

import pytest

from direct_chat.application.exceptions import ConflictError, NotFoundError, ValidationError
from direct_chat.domain.entities.message import Message
from direct_chat.services import chat_service
from tests.conftest import FakeStore, FakeUoW


@pytest.mark.asyncio
async def test_resolve_creates_chat_with_both_participants(uow, store, clock):
    chat, created = await chat_service.resolve_or_create_chat(1, 2, uow, clock=clock)

    assert created is True
    assert store.member_ids(chat.id) == {1, 2}
    assert uow._committed is True


@pytest.mark.asyncio
async def test_resolve_ignores_argument_order(uow, store, clock):
    store.next_chat_id = 10

    first, created_first = await chat_service.resolve_or_create_chat(1, 2, uow, clock=clock)
    second, created_second = await chat_service.resolve_or_create_chat(2, 1, uow, clock=clock)

    assert first.id == second.id == 10
    assert (created_first, created_second) == (True, False)
    assert len(store.chats) == 1


@pytest.mark.asyncio
async def test_resolve_rejects_self_chat(uow, store):
    with pytest.raises(ValidationError):
        await chat_service.resolve_or_create_chat(1, 1, uow)
    assert store.chats == {}


@pytest.mark.asyncio
async def test_resolve_rejects_unknown_user(uow, store):
    with pytest.raises(NotFoundError):
        await chat_service.resolve_or_create_chat(1, 99, uow)
    assert store.chats == {}


@pytest.mark.asyncio
async def test_concurrent_resolve_converges_on_one_chat(store, clock):
    store.add_user("dave")
    uow_a, uow_b = FakeUoW(store), FakeUoW(store)

    (chat_a, created_a), (chat_b, created_b) = await asyncio.gather(
        chat_service.resolve_or_create_chat(3, 4, uow_a, clock=clock),
        chat_service.resolve_or_create_chat(4, 3, uow_b, clock=clock),
    )

    assert chat_a.id == chat_b.id
    assert sorted([created_a, created_b]) == [False, True]
    assert len(store.chats) == 1
    assert uow_a.rollbacks + uow_b.rollbacks == 1


@pytest.mark.asyncio
async def test_many_concurrent_callers_get_the_same_chat(store, clock):
    calls = [
        chat_service.resolve_or_create_chat(1, 3, FakeUoW(store), clock=clock)
        if i % 2
        else chat_service.resolve_or_create_chat(3, 1, FakeUoW(store), clock=clock)
        for i in range(10)
    ]

    results = await asyncio.gather(*calls)

    assert {chat.id for chat, _ in results} == {next(iter(store.chats))}
    assert sum(created for _, created in results) == 1


@pytest.mark.asyncio
async def test_resolve_prefers_lowest_id_among_existing_duplicates(uow, store, clock):
    older = store.add_chat(1, 2)
    store.add_chat(2, 1)

    for _ in range(3):
        chat, created = await chat_service.resolve_or_create_chat(2, 1, uow, clock=clock)
        assert chat.id == older.id
        assert created is False


@pytest.mark.asyncio
async def test_resolve_ignores_chats_with_other_members(uow, store, clock):
    group = store.add_chat(1, 2, 3)

    chat, created = await chat_service.resolve_or_create_chat(1, 2, uow, clock=clock)

    assert created is True
    assert chat.id != group.id


@pytest.mark.asyncio
async def test_resolve_gives_up_when_winner_never_becomes_visible(uow, store):
    async def always_conflicts(pair, created_at):
        return None

    uow.chats_w.create_for_pair = always_conflicts

    with pytest.raises(ConflictError):
        await chat_service.resolve_or_create_chat(1, 2, uow)
    assert uow.rollbacks >= 1
    assert uow._committed is False


@pytest.mark.asyncio
async def test_create_chat_always_creates(uow, store, clock):
    first = await chat_service.create_chat(1, 2, uow, clock=clock)
    second = await chat_service.create_chat(2, 1, uow, clock=clock)

    assert first.id != second.id
    assert store.member_ids(first.id) == store.member_ids(second.id) == {1, 2}


@pytest.mark.asyncio
async def test_list_participants(uow, store):
    chat = store.add_chat(2, 3)

    users = await chat_service.list_participants(chat.id, uow)

    assert [u.username for u in users] == ["bob", "carol"]


@pytest.mark.asyncio
async def test_list_participants_unknown_chat(uow):
    with pytest.raises(NotFoundError):
        await chat_service.list_participants(404, uow)


def _message(store: FakeStore, chat_id: int, author_id: int, at: datetime) -> None:
    seq = store.last_seq[chat_id] + 1
    store.last_seq[chat_id] = seq
    store.messages.append(
        Message(
            id=store.next_message_id,
            chat_id=chat_id,
            author_id=author_id,
            content=f"message {seq}",
            seq=seq,
            created_at=at,
        )
    )
    store.next_message_id += 1


@pytest.mark.asyncio
async def test_list_user_chats_orders_by_last_activity(uow, store):
    quiet = store.add_chat(1, 2)
    stale = store.add_chat(1, 3)
    busy = store.add_chat(1, 2)
    _message(store, stale.id, 3, datetime(2024, 1, 1, 9, tzinfo=timezone.utc))
    _message(store, busy.id, 2, datetime(2024, 1, 1, 12, tzinfo=timezone.utc))

    summaries = await chat_service.list_user_chats(1, uow)

    assert [s.chat.id for s in summaries] == [busy.id, stale.id, quiet.id]
    assert summaries[0].last_message.username == "bob"
    assert summaries[2].last_message is None
    assert {u.id for u in summaries[1].participants} == {1, 3}


@pytest.mark.asyncio
async def test_list_user_chats_only_includes_own_chats(uow, store):
    store.add_chat(2, 3)

    assert await chat_service.list_user_chats(1, uow) == []


@pytest.mark.asyncio
async def test_list_user_chats_unknown_user(uow):
    with pytest.raises(NotFoundError):
        await chat_service.list_user_chats(99, uow)
