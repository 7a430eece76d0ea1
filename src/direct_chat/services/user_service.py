"""Identity collaborator: users, registration and login."""
from __future__ import annotations

import logging

from direct_chat.application.dto.login import LoginResult
from direct_chat.application.exceptions import UnauthorizedError, ValidationError
from direct_chat.application.ports.auth import PasswordHasher, TokenIssuer
from direct_chat.application.uow import UnitOfWork
from direct_chat.domain.entities.user import User

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


async def list_users(uow: UnitOfWork) -> list[User]:
    return await uow.users.list_all()


async def register(
    username: str,
    email: str,
    password: str,
    uow: UnitOfWork,
    hasher: PasswordHasher,
) -> User:
    username = username.strip()
    if not username:
        raise ValidationError("Username must not be empty")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

    user = await uow.users_w.create(username, email.lower(), await hasher.hash(password))
    await uow.commit()
    logger.info("Registered user %d", user.id)
    return user


async def login(
    email: str,
    password: str,
    uow: UnitOfWork,
    hasher: PasswordHasher,
    issuer: TokenIssuer,
) -> LoginResult:
    found = await uow.users.get_credentials(email.lower())
    # Unknown emails are verified against no hash at all, at the same cost.
    verified = await hasher.verify(password, found[1] if found else None)
    if found is None or not verified:
        raise UnauthorizedError("Invalid email or password")
    return LoginResult(user=found[0], access_token=issuer.issue(found[0].id))
