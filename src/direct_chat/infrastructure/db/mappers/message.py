from __future__ import annotations

from direct_chat.domain.entities.message import Message
from direct_chat.infrastructure.db.models.message import MessageModel


def model_to_entity(model: MessageModel, *, username: str | None = None) -> Message:
    return Message(
        id=model.id,
        chat_id=model.chat_id,
        author_id=model.author_id,
        content=model.content,
        seq=model.seq,
        created_at=model.created_at,
        username=username,
    )
