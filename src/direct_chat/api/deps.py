"""FastAPI dependency injection helpers."""
from __future__ import annotations

from typing import Annotated, AsyncIterator

from fastapi import Depends, Request

from direct_chat.application.ports.auth import PasswordHasher, TokenIssuer, TokenVerifier
from direct_chat.config import settings
from direct_chat.infrastructure.auth.hs256_verifier import HS256Issuer, HS256Verifier
from direct_chat.infrastructure.auth.passwords import Pbkdf2PasswordHasher
from direct_chat.infrastructure.db.session import AsyncSessionLocal
from direct_chat.infrastructure.db.uow import SqlAlchemyUoW
from direct_chat.services.notification_dispatcher import NotificationDispatcher


async def get_uow() -> AsyncIterator[SqlAlchemyUoW]:
    async with AsyncSessionLocal() as session:
        uow = SqlAlchemyUoW(session)
        try:
            yield uow
        finally:
            await session.close()


UoWDep = Annotated[SqlAlchemyUoW, Depends(get_uow)]


def get_dispatcher(request: Request) -> NotificationDispatcher:
    return request.app.state.dispatcher


DispatcherDep = Annotated[NotificationDispatcher, Depends(get_dispatcher)]


_verifier: TokenVerifier | None = None


def get_verifier() -> TokenVerifier:
    global _verifier  # noqa: PLW0603
    if _verifier is None:
        _verifier = HS256Verifier(settings.JWT_SECRET, settings.JWT_ALGORITHM)
    return _verifier


def get_issuer() -> TokenIssuer:
    return HS256Issuer(settings.JWT_SECRET, settings.JWT_ALGORITHM, settings.JWT_TTL_SECONDS)


def get_password_hasher() -> PasswordHasher:
    return Pbkdf2PasswordHasher(settings.PASSWORD_HASH_ITERATIONS)


IssuerDep = Annotated[TokenIssuer, Depends(get_issuer)]
HasherDep = Annotated[PasswordHasher, Depends(get_password_hasher)]
