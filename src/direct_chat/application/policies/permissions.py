from __future__ import annotations

from direct_chat.application.exceptions import NotFoundError, ValidationError
from direct_chat.application.repositories.chat import ChatReader
from direct_chat.application.repositories.participant import ParticipantReader
from direct_chat.application.repositories.user import UserReader
from direct_chat.domain.entities.chat import Chat
from direct_chat.domain.entities.user import User


async def require_chat(chat_id: int, chats: ChatReader) -> Chat:
    chat = await chats.get_by_id(chat_id)
    if chat is None:
        raise NotFoundError(f"Chat {chat_id} not found")
    return chat


async def require_user(user_id: int, users: UserReader) -> User:
    user = await users.get_by_id(user_id)
    if user is None:
        raise NotFoundError(f"User {user_id} not found")
    return user


async def assert_participant(
    chat_id: int,
    user_id: int,
    participants: ParticipantReader,
) -> None:
    """Raise if the user is not a member of the chat."""
    if not await participants.is_participant(chat_id, user_id):
        raise ValidationError(f"User {user_id} is not a participant of chat {chat_id}")
