"""In-process registry of live push connections.

Each registered connection owns a bounded FIFO queue drained by exactly one
writer task, so a connection receives frames in the order ``broadcast`` was
called. Registry mutations happen under a single lock. A connection whose
transport is closed, whose queue overflows, or whose send fails or times out
is deregistered and its transport closed, so the client reconnects and
re-fetches; nothing of that reaches the broadcaster.
"""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, Iterable, Protocol

from starlette.websockets import WebSocketState

from direct_chat.application.dto.events import PushEvent
from direct_chat.domain.value_objects.enums import EventType
from direct_chat.infrastructure.ws.protocol import WsOutbound

logger = logging.getLogger(__name__)

CLOSE_TIMEOUT_SECONDS = 5.0


class PushTransport(Protocol):
    """The subset of ``starlette.websockets.WebSocket`` the hub relies on."""

    client_state: WebSocketState
    application_state: WebSocketState

    async def send_text(self, data: str) -> None: ...

    async def close(self, code: int = 1000, reason: str | None = None) -> None: ...


class Connection:
    def __init__(
        self,
        connection_id: str,
        handle: PushTransport,
        user_id: int,
        *,
        queue_size: int,
        last_seen: float,
    ) -> None:
        self.id = connection_id
        self.handle = handle
        self.user_id = user_id
        self.last_seen = last_seen
        self.queue: asyncio.Queue[str] = asyncio.Queue(maxsize=queue_size)
        self._writer: asyncio.Task[None] | None = None

    @property
    def is_open(self) -> bool:
        return (
            self.handle.client_state == WebSocketState.CONNECTED
            and self.handle.application_state == WebSocketState.CONNECTED
        )

    def offer(self, frame: str) -> bool:
        try:
            self.queue.put_nowait(frame)
        except asyncio.QueueFull:
            return False
        return True

    async def flush(self) -> None:
        """Wait until every queued frame has been sent or discarded."""
        await self.queue.join()

    def start(self, writer: asyncio.Task[None]) -> None:
        self._writer = writer

    def stop(self) -> None:
        if self._writer is not None and self._writer is not asyncio.current_task():
            self._writer.cancel()
        while True:
            try:
                self.queue.get_nowait()
            except asyncio.QueueEmpty:
                break
            self.queue.task_done()


class ConnectionHub:
    def __init__(
        self,
        *,
        queue_size: int = 256,
        send_timeout: float = 10.0,
        idle_timeout: float = 90.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._connections: dict[str, Connection] = {}
        self._by_user: dict[int, set[str]] = {}
        self._lock = asyncio.Lock()
        self._queue_size = queue_size
        self._send_timeout = send_timeout
        self._idle_timeout = idle_timeout
        self._clock = clock
        self._reaper: asyncio.Task[None] | None = None

    def __len__(self) -> int:
        return len(self._connections)

    def __contains__(self, connection_id: object) -> bool:
        return connection_id in self._connections

    def get(self, connection_id: str) -> Connection | None:
        return self._connections.get(connection_id)

    async def register(
        self,
        connection_id: str,
        handle: PushTransport,
        user_id: int,
    ) -> Connection:
        async with self._lock:
            replaced = self._connections.get(connection_id)
            if (
                replaced is not None
                and replaced.handle is handle
                and replaced.user_id == user_id
            ):
                return replaced
            if replaced is not None:
                self._unindex(replaced)
            conn = Connection(
                connection_id,
                handle,
                user_id,
                queue_size=self._queue_size,
                last_seen=self._clock(),
            )
            self._connections[connection_id] = conn
            self._by_user.setdefault(user_id, set()).add(connection_id)

        conn.start(
            asyncio.create_task(self._write_loop(conn), name=f"ws-writer-{connection_id}")
        )
        if replaced is not None:
            replaced.stop()
            if replaced.handle is not handle:
                await _close_quietly(replaced.handle, 1000, "replaced")
            logger.info("Connection %s re-registered", connection_id)
        logger.debug(
            "Registered %s for user %d (total=%d)", connection_id, user_id, len(self._connections),
        )
        return conn

    async def deregister(self, connection_id: str) -> bool:
        conn = self._connections.get(connection_id)
        if conn is None:
            return False
        return await self._release(conn)

    def touch(self, connection_id: str) -> None:
        conn = self._connections.get(connection_id)
        if conn is not None:
            conn.last_seen = self._clock()

    async def broadcast(
        self,
        event: PushEvent,
        target_user_ids: Iterable[int] | None = None,
    ) -> int:
        """Queue ``event`` for every matching open connection.

        ``target_user_ids=None`` means every registered connection. Returns the
        number of connections the frame was handed to.
        """
        frame = WsOutbound.from_event(event).model_dump_json()
        async with self._lock:
            if target_user_ids is None:
                recipients = list(self._connections.values())
            else:
                recipients = [
                    self._connections[cid]
                    for uid in set(target_user_ids)
                    for cid in self._by_user.get(uid, ())
                ]

        delivered = 0
        dead: list[Connection] = []
        for conn in recipients:
            if conn.is_open and conn.offer(frame):
                delivered += 1
            else:
                dead.append(conn)
        for conn in dead:
            logger.info("Dropping connection %s (closed or backed up)", conn.id)
            await self._evict(conn, 1011, "backed up")
        return delivered

    def send_to(self, connection_id: str, event: PushEvent) -> bool:
        """Queue a frame for one connection, e.g. a reply to its own request."""
        conn = self._connections.get(connection_id)
        if conn is None:
            return False
        return conn.offer(WsOutbound.from_event(event).model_dump_json())

    async def reap_stale(self) -> int:
        """Evict idle or closed connections and ping the rest."""
        now = self._clock()
        async with self._lock:
            conns = list(self._connections.values())

        stale = [c for c in conns if not c.is_open or now - c.last_seen > self._idle_timeout]
        for conn in stale:
            await self._evict(conn, 1001, "idle timeout")
        if stale:
            logger.info("Reaped %d stale connection(s)", len(stale))

        ping = WsOutbound(type=EventType.PING.value).model_dump_json()
        for conn in conns:
            if conn in stale:
                continue
            if not conn.offer(ping):
                await self._evict(conn, 1011, "backed up")
        return len(stale)

    async def start_reaper(self, interval: float) -> None:
        self._reaper = asyncio.create_task(self._reap_loop(interval), name="ws-reaper")
        logger.info("Connection reaper started (interval=%.0fs)", interval)

    async def close_all(self) -> None:
        if self._reaper:
            self._reaper.cancel()
            try:
                await self._reaper
            except asyncio.CancelledError:
                pass
            self._reaper = None

        async with self._lock:
            conns = list(self._connections.values())
        for conn in conns:
            await self._evict(conn, 1001, "server shutdown")

    async def _reap_loop(self, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            try:
                await self.reap_stale()
            except Exception:
                logger.exception("Connection reaper error")

    async def _write_loop(self, conn: Connection) -> None:
        while True:
            frame = await conn.queue.get()
            try:
                async with asyncio.timeout(self._send_timeout):
                    await conn.handle.send_text(frame)
            except Exception:
                logger.info("Send to %s failed, deregistering", conn.id, exc_info=True)
                await self._evict(conn, 1011, "send failed")
                return
            finally:
                conn.queue.task_done()

    async def _evict(self, conn: Connection, code: int, reason: str) -> None:
        """Deregister and close the transport so the client knows to reconnect."""
        await self._release(conn)
        await _close_quietly(conn.handle, code, reason)

    async def _release(self, conn: Connection) -> bool:
        async with self._lock:
            removed = self._connections.get(conn.id) is conn
            if removed:
                del self._connections[conn.id]
                self._unindex(conn)
        conn.stop()
        if removed:
            logger.debug("Deregistered %s (total=%d)", conn.id, len(self._connections))
        return removed

    def _unindex(self, conn: Connection) -> None:
        ids = self._by_user.get(conn.user_id)
        if ids is not None:
            ids.discard(conn.id)
            if not ids:
                del self._by_user[conn.user_id]


async def _close_quietly(handle: PushTransport, code: int, reason: str) -> None:
    try:
        async with asyncio.timeout(CLOSE_TIMEOUT_SECONDS):
            await handle.close(code=code, reason=reason)
    except Exception:
        logger.debug("Transport close failed", exc_info=True)
