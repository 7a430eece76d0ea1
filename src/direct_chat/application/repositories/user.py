from __future__ import annotations

from typing import Protocol

from direct_chat.domain.entities.user import User


class UserReader(Protocol):
    async def get_by_id(self, user_id: int) -> User | None: ...

    async def list_all(self) -> list[User]: ...

    async def get_credentials(self, email: str) -> tuple[User, str] | None:
        """Return the user and its stored password hash, looked up by email."""
        ...


class UserWriter(Protocol):
    async def create(self, username: str, email: str, password_hash: str) -> User:
        """Insert a user. Raises ConflictError when the email is taken."""
        ...
