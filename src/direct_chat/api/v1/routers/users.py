from __future__ import annotations

from fastapi import APIRouter

from direct_chat.api.deps import DispatcherDep, HasherDep, IssuerDep, UoWDep
from direct_chat.api.v1.schemas.chat import ChatSummaryResponse
from direct_chat.api.v1.schemas.user import (
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    UserResponse,
)
from direct_chat.services import chat_service, user_service

router = APIRouter(tags=["users"])


@router.get("/users", response_model=list[UserResponse])
async def list_users(uow: UoWDep) -> list[UserResponse]:
    users = await user_service.list_users(uow)
    return [UserResponse.model_validate(u, from_attributes=True) for u in users]


@router.get("/users/{user_id}/chats", response_model=list[ChatSummaryResponse])
async def list_user_chats(user_id: int, uow: UoWDep) -> list[ChatSummaryResponse]:
    summaries = await chat_service.list_user_chats(user_id, uow)
    return [ChatSummaryResponse.from_summary(s) for s in summaries]


@router.post("/register", response_model=UserResponse, status_code=201)
async def register(
    body: RegisterRequest,
    uow: UoWDep,
    hasher: HasherDep,
    dispatcher: DispatcherDep,
) -> UserResponse:
    user = await user_service.register(body.username, body.email, body.password, uow, hasher)
    await dispatcher.user_registered(user)
    return UserResponse.model_validate(user, from_attributes=True)


@router.post("/auth/login", response_model=LoginResponse)
async def login(
    body: LoginRequest,
    uow: UoWDep,
    hasher: HasherDep,
    issuer: IssuerDep,
) -> LoginResponse:
    result = await user_service.login(body.email, body.password, uow, hasher, issuer)
    return LoginResponse(
        id=result.user.id,
        username=result.user.username,
        email=result.user.email,
        access_token=result.access_token,
    )
