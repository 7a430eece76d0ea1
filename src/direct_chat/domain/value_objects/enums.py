from __future__ import annotations

from enum import StrEnum


class EventType(StrEnum):
    NEW_MESSAGE = "new_message"
    NEW_CHAT = "new_chat"
    NEW_USER = "new_user"
    PING = "ping"
    PONG = "pong"
    ERROR = "error"
