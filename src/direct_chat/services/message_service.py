from __future__ import annotations

from direct_chat.application.exceptions import ValidationError
from direct_chat.application.policies.permissions import assert_participant, require_chat
from direct_chat.application.ports.clock import Clock, SystemClock
from direct_chat.application.uow import UnitOfWork
from direct_chat.config import settings
from direct_chat.domain.entities.message import Message

_default_clock = SystemClock()


def _validate_content(content: str) -> None:
    if not content or not content.strip():
        raise ValidationError("Message content must not be empty")
    if len(content) > settings.MESSAGE_MAX_LENGTH:
        raise ValidationError(
            f"Message content exceeds {settings.MESSAGE_MAX_LENGTH} characters"
        )


async def append(
    chat_id: int,
    author_id: int,
    content: str,
    uow: UnitOfWork,
    *,
    clock: Clock = _default_clock,
) -> Message:
    """Store a message at the end of the chat's history.

    The message gets the chat's next sequence number; appends to one chat are
    serialized by the storage layer, so ``seq`` order is commit order.
    """
    _validate_content(content)
    await require_chat(chat_id, uow.chats)
    await assert_participant(chat_id, author_id, uow.participants)

    msg = await uow.messages_w.append(chat_id, author_id, content, clock.now())
    await uow.commit()
    return msg


async def list_messages(chat_id: int, uow: UnitOfWork) -> list[Message]:
    await require_chat(chat_id, uow.chats)
    return await uow.messages.list_messages(chat_id)
