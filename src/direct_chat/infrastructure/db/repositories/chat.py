from __future__ import annotations

from datetime import datetime

from sqlalchemy import and_, func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from direct_chat.domain.entities.chat import Chat
from direct_chat.domain.value_objects.pair import UserPair
from direct_chat.infrastructure.db.guard import guarded
from direct_chat.infrastructure.db.mappers import chat as mapper
from direct_chat.infrastructure.db.models.chat import ChatModel
from direct_chat.infrastructure.db.models.participant import ParticipantModel


class ChatReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    @guarded
    async def get_by_id(self, chat_id: int) -> Chat | None:
        result = await self._session.get(ChatModel, chat_id)
        return mapper.model_to_entity(result) if result else None

    @guarded
    async def find_for_pair(self, pair: UserPair) -> Chat | None:
        first = aliased(ParticipantModel)
        second = aliased(ParticipantModel)
        member_count = (
            select(func.count())
            .select_from(ParticipantModel)
            .where(ParticipantModel.chat_id == ChatModel.id)
            .scalar_subquery()
        )
        stmt = (
            select(ChatModel)
            .join(first, and_(first.chat_id == ChatModel.id, first.user_id == pair.low))
            .join(second, and_(second.chat_id == ChatModel.id, second.user_id == pair.high))
            .where(member_count == 2)
            .order_by(ChatModel.id.asc())
            .limit(1)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return mapper.model_to_entity(model) if model else None

    @guarded
    async def get_by_pair_key(self, pair: UserPair) -> Chat | None:
        stmt = select(ChatModel).where(
            ChatModel.pair_low == pair.low,
            ChatModel.pair_high == pair.high,
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return mapper.model_to_entity(model) if model else None

    @guarded
    async def list_for_user(self, user_id: int) -> list[Chat]:
        stmt = (
            select(ChatModel)
            .join(ParticipantModel, ParticipantModel.chat_id == ChatModel.id)
            .where(ParticipantModel.user_id == user_id)
            .order_by(ChatModel.id.asc())
        )
        result = await self._session.execute(stmt)
        return [mapper.model_to_entity(m) for m in result.scalars().all()]


class ChatWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    @guarded
    async def create(self, created_at: datetime) -> Chat:
        model = ChatModel(created_at=created_at)
        self._session.add(model)
        await self._session.flush()
        return mapper.model_to_entity(model)

    @guarded
    async def create_for_pair(self, pair: UserPair, created_at: datetime) -> Chat | None:
        """Atomic insert-or-nothing on the pair key.

        A concurrent transaction holding the same key makes this statement wait
        for it; if that one commits, nothing is inserted and None is returned.
        """
        stmt = (
            pg_insert(ChatModel)
            .values(pair_low=pair.low, pair_high=pair.high, created_at=created_at)
            .on_conflict_do_nothing(constraint="uq_chats_pair")
            .returning(ChatModel)
        )
        result = await self._session.execute(stmt)
        row = result.scalar_one_or_none()
        return mapper.model_to_entity(row) if row is not None else None
