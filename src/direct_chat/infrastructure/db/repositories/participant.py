from __future__ import annotations

from sqlalchemy import insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from direct_chat.domain.entities.user import User
from direct_chat.infrastructure.db.guard import guarded
from direct_chat.infrastructure.db.mappers import user as user_mapper
from direct_chat.infrastructure.db.models.participant import ParticipantModel
from direct_chat.infrastructure.db.models.user import UserModel


class ParticipantReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    @guarded
    async def is_participant(self, chat_id: int, user_id: int) -> bool:
        stmt = (
            select(ParticipantModel.user_id)
            .where(
                ParticipantModel.chat_id == chat_id,
                ParticipantModel.user_id == user_id,
            )
            .limit(1)
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none() is not None

    @guarded
    async def list_user_ids(self, chat_id: int) -> list[int]:
        stmt = (
            select(ParticipantModel.user_id)
            .where(ParticipantModel.chat_id == chat_id)
            .order_by(ParticipantModel.user_id.asc())
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    @guarded
    async def list_users(self, chat_ids: list[int]) -> dict[int, list[User]]:
        if not chat_ids:
            return {}
        stmt = (
            select(ParticipantModel.chat_id, UserModel)
            .join(UserModel, UserModel.id == ParticipantModel.user_id)
            .where(ParticipantModel.chat_id.in_(chat_ids))
            .order_by(ParticipantModel.chat_id.asc(), UserModel.id.asc())
        )
        result = await self._session.execute(stmt)
        grouped: dict[int, list[User]] = {}
        for chat_id, model in result.all():
            grouped.setdefault(chat_id, []).append(user_mapper.model_to_entity(model))
        return grouped


class ParticipantWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    @guarded
    async def add_many(self, chat_id: int, user_ids: list[int]) -> None:
        stmt = insert(ParticipantModel).values(
            [{"chat_id": chat_id, "user_id": uid} for uid in user_ids]
        )
        await self._session.execute(stmt)
