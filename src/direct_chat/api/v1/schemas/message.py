from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class SendMessageRequest(BaseModel):
    user_id: int = Field(alias="userId")
    content: str

    model_config = ConfigDict(populate_by_name=True)


class MessageResponse(BaseModel):
    id: int
    chat_id: int
    author_id: int
    content: str
    seq: int
    created_at: datetime
    username: str | None = None

    model_config = {"from_attributes": True}
