"""Redis Pub/Sub fan-out: publish side + subscriber background task."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Coroutine

import redis.asyncio as aioredis
from redis.exceptions import ConnectionError as RedisConnectionError

from direct_chat.application.dto.events import PushEvent
from direct_chat.infrastructure.bus.serializer import deserialize_event, serialize_event

logger = logging.getLogger(__name__)

RESUBSCRIBE_DELAY_SECONDS = 1.0


class RedisPubSubPublisher:
    """Implements application.ports.bus.EventPublisher."""

    def __init__(self, redis: aioredis.Redis, channel: str) -> None:
        self._redis = redis
        self._channel = channel

    async def publish(
        self,
        event: PushEvent,
        target_user_ids: frozenset[int] | None,
    ) -> None:
        await self._redis.publish(self._channel, serialize_event(event, target_user_ids))


OnEventCallback = Callable[
    [PushEvent, frozenset[int] | None], Coroutine[Any, Any, None]
]


class RedisPubSubSubscriber:
    """Background task that listens to a Redis channel and dispatches events."""

    def __init__(
        self,
        redis: aioredis.Redis,
        channel: str,
        callback: OnEventCallback,
    ) -> None:
        self._redis = redis
        self._channel = channel
        self._callback = callback
        self._task: asyncio.Task[None] | None = None

    async def start(self) -> None:
        self._task = asyncio.create_task(self._listen(), name="redis-pubsub-subscriber")
        logger.info("Redis Pub/Sub subscriber started on channel=%s", self._channel)

    async def stop(self) -> None:
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            logger.info("Redis Pub/Sub subscriber stopped")

    async def _listen(self) -> None:
        while True:
            try:
                await self._consume()
            except RedisConnectionError:
                logger.warning(
                    "Lost Redis subscription on %s, retrying in %.1fs",
                    self._channel,
                    RESUBSCRIBE_DELAY_SECONDS,
                )
                await asyncio.sleep(RESUBSCRIBE_DELAY_SECONDS)

    async def _consume(self) -> None:
        pubsub = self._redis.pubsub()
        await pubsub.subscribe(self._channel)
        try:
            async for message in pubsub.listen():
                if message["type"] != "message":
                    continue
                try:
                    event, targets = deserialize_event(message["data"])
                    await self._callback(event, targets)
                except Exception:
                    logger.exception("Error processing pubsub message")
        finally:
            await pubsub.aclose()
