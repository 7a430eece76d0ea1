from __future__ import annotations

from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from direct_chat.domain.entities.message import Message
from direct_chat.infrastructure.db.guard import guarded
from direct_chat.infrastructure.db.mappers import message as mapper
from direct_chat.infrastructure.db.models.chat import ChatModel
from direct_chat.infrastructure.db.models.message import MessageModel
from direct_chat.infrastructure.db.models.user import UserModel


class MessageReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    @guarded
    async def list_messages(self, chat_id: int) -> list[Message]:
        stmt = (
            select(MessageModel, UserModel.username)
            .join(UserModel, UserModel.id == MessageModel.author_id)
            .where(MessageModel.chat_id == chat_id)
            .order_by(MessageModel.seq.asc(), MessageModel.id.asc())
        )
        result = await self._session.execute(stmt)
        return [mapper.model_to_entity(m, username=name) for m, name in result.all()]

    @guarded
    async def last_for_chats(self, chat_ids: list[int]) -> dict[int, Message]:
        if not chat_ids:
            return {}
        stmt = (
            select(MessageModel, UserModel.username)
            .join(UserModel, UserModel.id == MessageModel.author_id)
            .where(MessageModel.chat_id.in_(chat_ids))
            .order_by(MessageModel.chat_id, MessageModel.seq.desc())
            .distinct(MessageModel.chat_id)
        )
        result = await self._session.execute(stmt)
        return {
            m.chat_id: mapper.model_to_entity(m, username=name)
            for m, name in result.all()
        }


class MessageWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    @guarded
    async def append(
        self,
        chat_id: int,
        author_id: int,
        content: str,
        created_at: datetime,
    ) -> Message:
        # The row lock taken here is held until commit, so appends to one
        # chat commit in seq order.
        seq_stmt = (
            update(ChatModel)
            .where(ChatModel.id == chat_id)
            .values(last_seq=ChatModel.last_seq + 1)
            .returning(ChatModel.last_seq)
            .execution_options(synchronize_session=False)
        )
        seq = (await self._session.execute(seq_stmt)).scalar_one()

        model = MessageModel(
            chat_id=chat_id,
            author_id=author_id,
            content=content,
            seq=seq,
            created_at=created_at,
        )
        self._session.add(model)
        await self._session.flush()
        return mapper.model_to_entity(model)
