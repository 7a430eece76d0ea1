"""WebSocket frame envelope models."""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel

from direct_chat.application.dto.events import PushEvent


class WsInbound(BaseModel):
    """Client → Server."""

    type: str  # ping
    data: dict[str, Any] = {}


class WsOutbound(BaseModel):
    """Server → Client."""

    type: str  # new_message | new_chat | new_user | ping | pong | error
    data: dict[str, Any] = {}

    @classmethod
    def from_event(cls, event: PushEvent) -> WsOutbound:
        return cls(type=event.type.value, data=event.data)
