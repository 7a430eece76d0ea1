from __future__ import annotations

import logging
import uuid

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect
from pydantic import ValidationError as PydanticValidationError

from direct_chat.api.deps import get_verifier
from direct_chat.application.dto.events import PushEvent
from direct_chat.application.dto.principal import Principal
from direct_chat.domain.value_objects.enums import EventType
from direct_chat.infrastructure.ws.hub import ConnectionHub
from direct_chat.infrastructure.ws.protocol import WsInbound

logger = logging.getLogger(__name__)
router = APIRouter(tags=["websocket"])


async def _authenticate(token: str) -> Principal | None:
    try:
        return await get_verifier().verify(token)
    except Exception:
        logger.debug("WS auth failed", exc_info=True)
        return None


@router.websocket("/ws")
async def ws_push(
    websocket: WebSocket,
    token: str = Query(...),
) -> None:
    principal = await _authenticate(token)
    if principal is None:
        await websocket.close(code=4001, reason="Authentication failed")
        return

    hub: ConnectionHub = websocket.app.state.hub
    connection_id = uuid.uuid4().hex
    await websocket.accept()
    await hub.register(connection_id, websocket, principal.user_id)
    try:
        await _read_loop(websocket, hub, connection_id)
    except WebSocketDisconnect:
        pass
    except Exception:
        logger.exception("WS error for %s", connection_id)
    finally:
        await hub.deregister(connection_id)


async def _read_loop(ws: WebSocket, hub: ConnectionHub, connection_id: str) -> None:
    # Replies go through the hub so the connection keeps a single writer.
    while True:
        raw = await ws.receive_text()
        hub.touch(connection_id)
        try:
            msg = WsInbound.model_validate_json(raw)
        except PydanticValidationError:
            hub.send_to(
                connection_id,
                PushEvent(type=EventType.ERROR, data={"code": "invalid_payload"}),
            )
            continue

        if msg.type == EventType.PING:
            hub.send_to(connection_id, PushEvent(type=EventType.PONG))
        elif msg.type == EventType.PONG:
            continue
        else:
            hub.send_to(
                connection_id,
                PushEvent(type=EventType.ERROR, data={"code": "unknown_type", "type": msg.type}),
            )
