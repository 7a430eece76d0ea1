from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class Message:
    id: int
    chat_id: int
    author_id: int
    content: str
    seq: int
    created_at: datetime
    # Filled in by listings that join the author.
    username: str | None = None
