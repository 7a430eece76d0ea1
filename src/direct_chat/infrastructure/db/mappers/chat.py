from __future__ import annotations

from direct_chat.domain.entities.chat import Chat
from direct_chat.infrastructure.db.models.chat import ChatModel


def model_to_entity(model: ChatModel) -> Chat:
    return Chat(
        id=model.id,
        created_at=model.created_at,
    )
