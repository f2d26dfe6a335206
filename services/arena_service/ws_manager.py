"""
WebSocket fan-out for session events.

The session emits events synchronously from the event loop; ``publish``
turns each one into a broadcast task so the session never waits on a slow
browser. Single-worker uvicorn keeps all of this on one loop, so no locks.
"""

from __future__ import annotations

import asyncio
import logging

from fastapi import WebSocket

from shared.contracts.events import BaseEvent

logger = logging.getLogger(__name__)


class ConnectionManager:
    def __init__(self) -> None:
        self._active: list[WebSocket] = []
        self._pending: set[asyncio.Task] = set()

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self._active.append(websocket)
        logger.info(
            "WebSocket connected. Active connections: %d", len(self._active)
        )

    def disconnect(self, websocket: WebSocket) -> None:
        if websocket in self._active:
            self._active.remove(websocket)
        logger.info(
            "WebSocket disconnected. Active connections: %d", len(self._active)
        )

    def publish(self, event: BaseEvent) -> None:
        """Schedule a broadcast of ``event``; a no-op with nobody connected."""
        if not self._active:
            return
        task = asyncio.get_running_loop().create_task(
            self.broadcast(event.model_dump_json())
        )
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def broadcast(self, message: str) -> None:
        """Send a text message to all connected clients. Disconnects dead clients."""
        dead: list[WebSocket] = []
        for connection in list(self._active):
            try:
                await connection.send_text(message)
            except Exception:
                dead.append(connection)

        for conn in dead:
            self.disconnect(conn)

    @property
    def connection_count(self) -> int:
        return len(self._active)
