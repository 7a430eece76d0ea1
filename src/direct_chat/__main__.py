"""Entrypoint: python -m direct_chat"""
from __future__ import annotations

import logging

import uvicorn

from direct_chat.api.middleware.request_context import CorrelationIdFilter
from direct_chat.config import settings


def _configure_logging() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s [%(correlation_id)s]: %(message)s",
    )
    for handler in logging.getLogger().handlers:
        handler.addFilter(CorrelationIdFilter())


def main() -> None:
    _configure_logging()
    uvicorn.run(
        "direct_chat.app:create_app",
        factory=True,
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
        log_config=None,
    )


if __name__ == "__main__":
    main()
