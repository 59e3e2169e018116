"""Connection tracking for the echo-broadcast relay."""

from __future__ import annotations

import logging

from fastapi import WebSocket

logger = logging.getLogger("chatlateral.relay")


class ConnectionManager:
    """Tracks the open WebSocket connections.

    There are no rooms and no sender identity: a broadcast goes to every
    open connection, the sender included.
    """

    def __init__(self) -> None:
        self._connections: list[WebSocket] = []

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self._connections.append(websocket)
        logger.info("Client connected (%d open)", len(self._connections))

    async def disconnect(self, websocket: WebSocket) -> None:
        if websocket in self._connections:
            self._connections.remove(websocket)
            logger.info("Client disconnected (%d open)", len(self._connections))

    async def broadcast(self, frame: str) -> None:
        """Send a raw text frame to every open connection."""
        for ws in list(self._connections):
            try:
                await ws.send_text(frame)
            except Exception:
                logger.warning("Dropping connection after failed send")
                await self.disconnect(ws)

    def get_connection_count(self) -> int:
        return len(self._connections)
