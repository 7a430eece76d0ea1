from __future__ import annotations

from fastapi import APIRouter

from direct_chat.api.deps import DispatcherDep, UoWDep
from direct_chat.api.v1.schemas.chat import ChatIdResponse, ChatPairRequest, ChatResponse
from direct_chat.api.v1.schemas.user import UserResponse
from direct_chat.services import chat_service

router = APIRouter(tags=["chats"])


@router.post("/get-chat", response_model=ChatIdResponse)
async def get_chat(
    body: ChatPairRequest,
    uow: UoWDep,
    dispatcher: DispatcherDep,
) -> ChatIdResponse:
    chat, created = await chat_service.resolve_or_create_chat(
        body.user1_id, body.user2_id, uow,
    )
    if created:
        await dispatcher.chat_created(chat, [body.user1_id, body.user2_id])
    return ChatIdResponse(id=chat.id)


@router.post("/chats", response_model=ChatResponse)
async def create_chat(
    body: ChatPairRequest,
    uow: UoWDep,
    dispatcher: DispatcherDep,
) -> ChatResponse:
    """Always creates a new chat; prefer ``/get-chat``."""
    chat = await chat_service.create_chat(body.user1_id, body.user2_id, uow)
    await dispatcher.chat_created(chat, [body.user1_id, body.user2_id])
    return ChatResponse.model_validate(chat, from_attributes=True)


@router.get("/chats/{chat_id}/participants", response_model=list[UserResponse])
async def list_participants(chat_id: int, uow: UoWDep) -> list[UserResponse]:
    users = await chat_service.list_participants(chat_id, uow)
    return [UserResponse.model_validate(u, from_attributes=True) for u in users]
