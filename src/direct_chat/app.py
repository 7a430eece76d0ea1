from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import redis.asyncio as aioredis
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from direct_chat.api.middleware.request_context import RequestContextMiddleware
from direct_chat.api.v1.routers import chats, health, messages, users, ws
from direct_chat.application.exceptions import (
    ConflictError,
    NotFoundError,
    ServiceUnavailableError,
    UnauthorizedError,
    ValidationError,
)
from direct_chat.config import settings
from direct_chat.infrastructure.bus.redis_pubsub import (
    RedisPubSubPublisher,
    RedisPubSubSubscriber,
)
from direct_chat.infrastructure.ws.hub import ConnectionHub
from direct_chat.services.notification_dispatcher import NotificationDispatcher

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup / shutdown lifecycle."""
    hub: ConnectionHub = app.state.hub
    dispatcher: NotificationDispatcher = app.state.dispatcher
    subscriber: RedisPubSubSubscriber | None = None

    if settings.FANOUT_BACKEND == "redis":
        app.state.redis = aioredis.from_url(settings.REDIS_URL, decode_responses=True)
        logger.info("Redis connection pool created")
        subscriber = RedisPubSubSubscriber(
            app.state.redis,
            settings.REDIS_PUBSUB_CHANNEL,
            dispatcher.deliver,
        )
        await subscriber.start()
        dispatcher.publisher = RedisPubSubPublisher(app.state.redis, settings.REDIS_PUBSUB_CHANNEL)

    await hub.start_reaper(settings.WS_HEARTBEAT_SECONDS)

    yield

    await hub.close_all()
    if subscriber is not None:
        dispatcher.publisher = None
        await subscriber.stop()
        await app.state.redis.aclose()
        app.state.redis = None
        logger.info("Redis connection pool closed")


def create_app() -> FastAPI:
    app = FastAPI(
        title="Direct Chat Service",
        version="0.1.0",
        lifespan=lifespan,
    )

    hub = ConnectionHub(
        queue_size=settings.WS_QUEUE_SIZE,
        send_timeout=settings.WS_SEND_TIMEOUT_SECONDS,
        idle_timeout=settings.WS_IDLE_TIMEOUT_SECONDS,
    )
    app.state.hub = hub
    app.state.dispatcher = NotificationDispatcher(hub)
    app.state.redis = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestContextMiddleware)

    _register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(users.router)
    app.include_router(chats.router)
    app.include_router(messages.router)
    app.include_router(ws.router)

    return app


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(NotFoundError)
    async def _not_found(_req: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": exc.detail})

    @app.exception_handler(ValidationError)
    async def _validation(_req: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(status_code=422, content={"detail": exc.detail})

    @app.exception_handler(ConflictError)
    async def _conflict(_req: Request, exc: ConflictError) -> JSONResponse:
        return JSONResponse(status_code=409, content={"detail": exc.detail})

    @app.exception_handler(UnauthorizedError)
    async def _unauthorized(_req: Request, exc: UnauthorizedError) -> JSONResponse:
        return JSONResponse(status_code=401, content={"detail": exc.detail})

    @app.exception_handler(ServiceUnavailableError)
    async def _unavailable(_req: Request, exc: ServiceUnavailableError) -> JSONResponse:
        return JSONResponse(status_code=503, content={"detail": exc.detail})
