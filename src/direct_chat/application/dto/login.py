from __future__ import annotations

from dataclasses import dataclass

from direct_chat.domain.entities.user import User


@dataclass(frozen=True, slots=True)
class LoginResult:
    user: User
    access_token: str
