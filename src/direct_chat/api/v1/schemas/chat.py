from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from direct_chat.api.v1.schemas.user import UserResponse
from direct_chat.domain.entities.chat import ChatSummary


class ChatPairRequest(BaseModel):
    user1_id: int
    user2_id: int


class ChatIdResponse(BaseModel):
    id: int


class ChatResponse(BaseModel):
    id: int
    created_at: datetime

    model_config = {"from_attributes": True}


class ChatSummaryResponse(BaseModel):
    chat_id: int
    chat_created_at: datetime
    last_message_content: str | None = None
    last_message_created_at: datetime | None = None
    last_message_user_id: int | None = None
    last_message_username: str | None = None
    participants: list[UserResponse]

    @classmethod
    def from_summary(cls, summary: ChatSummary) -> ChatSummaryResponse:
        last = summary.last_message
        return cls(
            chat_id=summary.chat.id,
            chat_created_at=summary.chat.created_at,
            last_message_content=last.content if last else None,
            last_message_created_at=last.created_at if last else None,
            last_message_user_id=last.author_id if last else None,
            last_message_username=last.username if last else None,
            participants=[
                UserResponse.model_validate(u, from_attributes=True)
                for u in summary.participants
            ],
        )
