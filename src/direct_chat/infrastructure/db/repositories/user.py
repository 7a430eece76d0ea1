from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from direct_chat.application.exceptions import ConflictError
from direct_chat.domain.entities.user import User
from direct_chat.infrastructure.db.guard import guarded
from direct_chat.infrastructure.db.mappers import user as mapper
from direct_chat.infrastructure.db.models.user import UserModel


class UserReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    @guarded
    async def get_by_id(self, user_id: int) -> User | None:
        result = await self._session.get(UserModel, user_id)
        return mapper.model_to_entity(result) if result else None

    @guarded
    async def list_all(self) -> list[User]:
        result = await self._session.execute(select(UserModel).order_by(UserModel.id.asc()))
        return [mapper.model_to_entity(m) for m in result.scalars().all()]

    @guarded
    async def get_credentials(self, email: str) -> tuple[User, str] | None:
        stmt = select(UserModel).where(UserModel.email == email)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        if model is None:
            return None
        return mapper.model_to_entity(model), model.password_hash


class UserWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    @guarded
    async def create(self, username: str, email: str, password_hash: str) -> User:
        stmt = (
            pg_insert(UserModel)
            .values(username=username, email=email, password_hash=password_hash)
            .on_conflict_do_nothing(constraint="uq_users_email")
            .returning(UserModel)
        )
        result = await self._session.execute(stmt)
        row = result.scalar_one_or_none()
        if row is None:
            raise ConflictError("Email already registered")
        return mapper.model_to_entity(row)
