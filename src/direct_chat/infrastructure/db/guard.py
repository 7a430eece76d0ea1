"""Bounded, classified storage calls.

Every repository coroutine runs under ``STORAGE_TIMEOUT_SECONDS`` and may only
fail with an application error: unique/foreign-key violations become
ConflictError, everything else the driver or the network throws becomes
ServiceUnavailableError.
"""
from __future__ import annotations

import asyncio
import functools
import logging
from typing import Awaitable, Callable, ParamSpec, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from direct_chat.application.exceptions import ConflictError, ServiceUnavailableError
from direct_chat.config import settings

logger = logging.getLogger(__name__)

P = ParamSpec("P")
R = TypeVar("R")


def guarded(func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
    @functools.wraps(func)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        try:
            async with asyncio.timeout(settings.STORAGE_TIMEOUT_SECONDS):
                return await func(*args, **kwargs)
        except IntegrityError as exc:
            logger.info("Integrity violation in %s: %s", func.__qualname__, exc.orig)
            raise ConflictError("Conflicting write") from exc
        except TimeoutError as exc:
            logger.warning(
                "Storage call %s exceeded %.1fs",
                func.__qualname__,
                settings.STORAGE_TIMEOUT_SECONDS,
            )
            raise ServiceUnavailableError("Storage timed out") from exc
        except (SQLAlchemyError, OSError) as exc:
            logger.exception("Storage call %s failed", func.__qualname__)
            raise ServiceUnavailableError("Storage unavailable") from exc

    return wrapper
