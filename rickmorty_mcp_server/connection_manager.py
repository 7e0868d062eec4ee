"""Bookkeeping for long-lived Server-Sent Events streams."""

import asyncio
import json
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, Optional

from .router import MCPSession

HEARTBEAT_INTERVAL = 30.0


def format_sse_event(event: str, data: str) -> str:
    """Frame one SSE event."""
    return f"event: {event}\ndata: {data}\n\n"


def format_sse_message(payload: Dict[str, Any]) -> str:
    return format_sse_event("message", json.dumps(payload, ensure_ascii=False))


@dataclass
class StreamingConnection:
    """One open SSE stream."""
    id: str
    last_activity: float
    session: MCPSession = field(default_factory=MCPSession)
    outbox: "asyncio.Queue[str]" = field(default_factory=asyncio.Queue)


class ConnectionManager:
    """Tracks open SSE streams.

    All access to the connection table goes through one lock, so concurrent
    ``open``/``close``/``touch``/``count`` calls see a consistent table.
    Closing twice or touching a closed connection is a no-op. The manager
    never writes to the network.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._connections: Dict[str, StreamingConnection] = {}
        self._lock = asyncio.Lock()
        self._clock = clock
        self.logger = logging.getLogger("connection_manager")

    @staticmethod
    def new_id() -> str:
        return str(uuid.uuid4())

    async def open(self, connection_id: Optional[str] = None) -> str:
        """Register a connection and return its id.

        Opening an id that is already registered keeps the existing entry.
        """
        if connection_id is None:
            connection_id = self.new_id()
        async with self._lock:
            if connection_id in self._connections:
                return connection_id
            self._connections[connection_id] = StreamingConnection(
                id=connection_id, last_activity=self._clock()
            )
            total = len(self._connections)
        self.logger.info(f"SSE connection added: {connection_id} (active: {total})")
        return connection_id

    async def close(self, connection_id: str) -> None:
        async with self._lock:
            removed = self._connections.pop(connection_id, None)
            total = len(self._connections)
        if removed is not None:
            self.logger.info(f"SSE connection removed: {connection_id} (active: {total})")

    async def touch(self, connection_id: str) -> None:
        """Mark a connection as active now."""
        async with self._lock:
            connection = self._connections.get(connection_id)
            if connection is not None:
                connection.last_activity = self._clock()

    async def count(self) -> int:
        async with self._lock:
            return len(self._connections)

    async def get(self, connection_id: str) -> Optional[StreamingConnection]:
        async with self._lock:
            return self._connections.get(connection_id)

    async def last_activity(self, connection_id: str) -> Optional[float]:
        async with self._lock:
            connection = self._connections.get(connection_id)
            return None if connection is None else connection.last_activity

    async def event_stream(
        self,
        connection_id: str,
        is_disconnected: Callable[[], Awaitable[bool]],
        heartbeat_interval: float = HEARTBEAT_INTERVAL,
    ) -> AsyncIterator[str]:
        """Yield SSE frames for one connection until the client goes away.

        The connection is registered when the stream starts, so a stream
        that is never iterated leaves nothing behind. A ``ping`` frame is
        sent immediately and then every ``heartbeat_interval`` seconds;
        queued messages go out in between. The connection is deregistered
        when the stream ends, whatever the reason, so no frame is produced
        after close.
        """
        loop = asyncio.get_running_loop()
        try:
            await self.open(connection_id)
            connection = await self.get(connection_id)
            if connection is None:
                return
            next_heartbeat = loop.time()
            while not await is_disconnected():
                remaining = next_heartbeat - loop.time()
                if remaining <= 0:
                    yield format_sse_event("ping", "{}")
                    await self.touch(connection_id)
                    next_heartbeat = loop.time() + heartbeat_interval
                    continue
                try:
                    message = await asyncio.wait_for(connection.outbox.get(), timeout=remaining)
                except asyncio.TimeoutError:
                    continue
                yield message
        finally:
            await self.close(connection_id)
