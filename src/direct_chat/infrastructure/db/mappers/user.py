from __future__ import annotations

from direct_chat.domain.entities.user import User
from direct_chat.infrastructure.db.models.user import UserModel


def model_to_entity(model: UserModel) -> User:
    return User(
        id=model.id,
        username=model.username,
        email=model.email,
    )
