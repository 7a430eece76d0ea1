from __future__ import annotations

import logging

from direct_chat.application.exceptions import ConflictError, ValidationError
from direct_chat.application.policies.permissions import require_chat, require_user
from direct_chat.application.ports.clock import Clock, SystemClock
from direct_chat.application.uow import UnitOfWork
from direct_chat.config import settings
from direct_chat.domain.entities.chat import Chat, ChatSummary
from direct_chat.domain.entities.user import User
from direct_chat.domain.value_objects.pair import UserPair

logger = logging.getLogger(__name__)

_default_clock = SystemClock()


async def _validated_pair(user_a: int, user_b: int, uow: UnitOfWork) -> UserPair:
    pair = UserPair.of(user_a, user_b)
    if pair.is_self_pair:
        raise ValidationError("A chat needs two distinct users")
    await require_user(pair.low, uow.users)
    await require_user(pair.high, uow.users)
    return pair


async def resolve_or_create_chat(
    user_a: int,
    user_b: int,
    uow: UnitOfWork,
    *,
    clock: Clock = _default_clock,
) -> tuple[Chat, bool]:
    """Return the chat between two users, creating it if none exists.

    Returns (chat, created). Argument order does not matter. When several chats
    already share the exact participant set, the one with the lowest id wins.
    Concurrent callers for the same pair converge on one chat: the create path
    is an insert-or-nothing on the normalized pair key, and the loser re-reads
    the winner's row.
    """
    pair = await _validated_pair(user_a, user_b, uow)

    for attempt in range(1, settings.CHAT_RESOLVE_ATTEMPTS + 1):
        existing = await uow.chats.find_for_pair(pair)
        if existing is not None:
            return existing, False

        chat = await uow.chats_w.create_for_pair(pair, clock.now())
        if chat is not None:
            await uow.participants_w.add_many(chat.id, [pair.low, pair.high])
            await uow.commit()
            logger.info("Created chat %d for users %d and %d", chat.id, pair.low, pair.high)
            return chat, True

        await uow.rollback()
        winner = await uow.chats.get_by_pair_key(pair)
        if winner is not None:
            logger.debug("Lost create race for pair %s, using chat %d", pair.as_tuple(), winner.id)
            return winner, False
        logger.warning(
            "Pair %s conflicted but no chat is visible (attempt %d)", pair.as_tuple(), attempt,
        )

    raise ConflictError("Could not resolve chat for this pair, try again")


async def create_chat(
    user_a: int,
    user_b: int,
    uow: UnitOfWork,
    *,
    clock: Clock = _default_clock,
) -> Chat:
    """Create a new chat between two users without looking for an existing one."""
    pair = await _validated_pair(user_a, user_b, uow)
    chat = await uow.chats_w.create(clock.now())
    await uow.participants_w.add_many(chat.id, [pair.low, pair.high])
    await uow.commit()
    return chat


async def list_participants(chat_id: int, uow: UnitOfWork) -> list[User]:
    await require_chat(chat_id, uow.chats)
    grouped = await uow.participants.list_users([chat_id])
    return grouped.get(chat_id, [])


async def list_user_chats(user_id: int, uow: UnitOfWork) -> list[ChatSummary]:
    """Chats of a user with participants and the last message, most recent first."""
    await require_user(user_id, uow.users)
    chats = await uow.chats.list_for_user(user_id)
    chat_ids = [c.id for c in chats]
    participants = await uow.participants.list_users(chat_ids)
    last_messages = await uow.messages.last_for_chats(chat_ids)

    summaries = [
        ChatSummary(
            chat=chat,
            participants=participants.get(chat.id, []),
            last_message=last_messages.get(chat.id),
        )
        for chat in chats
    ]
    # Chats with messages first, newest first; chats without messages keep id order.
    with_messages = sorted(
        (s for s in summaries if s.last_message is not None),
        key=lambda s: (-s.last_message.created_at.timestamp(), s.chat.id),  # type: ignore[union-attr]
    )
    return with_messages + [s for s in summaries if s.last_message is None]
