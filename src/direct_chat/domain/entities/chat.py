from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from direct_chat.domain.entities.message import Message
from direct_chat.domain.entities.user import User


@dataclass(frozen=True, slots=True)
class Chat:
    id: int
    created_at: datetime


@dataclass(frozen=True, slots=True)
class ChatSummary:
    """A chat as seen from one user's chat list."""

    chat: Chat
    participants: list[User] = field(default_factory=list)
    last_message: Message | None = None
