from __future__ import annotations

from fastapi import APIRouter

from direct_chat.api.deps import DispatcherDep, UoWDep
from direct_chat.api.v1.schemas.message import MessageResponse, SendMessageRequest
from direct_chat.services import message_service

router = APIRouter(prefix="/chats", tags=["messages"])


@router.get("/{chat_id}/messages", response_model=list[MessageResponse])
async def list_messages(chat_id: int, uow: UoWDep) -> list[MessageResponse]:
    messages = await message_service.list_messages(chat_id, uow)
    return [MessageResponse.model_validate(m, from_attributes=True) for m in messages]


@router.post("/{chat_id}/messages", response_model=MessageResponse, status_code=201)
async def send_message(
    chat_id: int,
    body: SendMessageRequest,
    uow: UoWDep,
    dispatcher: DispatcherDep,
) -> MessageResponse:
    msg = await message_service.append(chat_id, body.user_id, body.content, uow)
    await dispatcher.message_created(msg, uow.participants)
    return MessageResponse.model_validate(msg, from_attributes=True)
