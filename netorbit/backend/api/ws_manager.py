"""
api/ws_manager.py

WebSocketManager — fans pipeline output out to renderer clients.

Channels:
    "points"   — every batch of Points emitted by the BatchScheduler
    "universe" — UniverseState snapshots pushed on a fixed interval

Thread safety: designed to be called exclusively from asyncio coroutines.
"""

from __future__ import annotations

import json
import logging
from collections import defaultdict

from fastapi import WebSocket
from fastapi.websockets import WebSocketDisconnect

from ..models import Point

logger = logging.getLogger(__name__)

POINTS = "points"
UNIVERSE = "universe"


class WebSocketManager:
    """Named broadcast channels, each holding any number of WebSocket clients."""

    def __init__(self) -> None:
        self._channels: dict[str, set[WebSocket]] = defaultdict(set)

    async def connect(self, websocket: WebSocket, channel: str) -> None:
        """Accept *websocket* and subscribe it to *channel*."""
        await websocket.accept()
        self._channels[channel].add(websocket)
        logger.debug(
            "WS connected — channel=%r total=%d",
            channel,
            len(self._channels[channel]),
        )

    async def disconnect(self, websocket: WebSocket, channel: str) -> None:
        """Unsubscribe *websocket* (no-op if it is not on the channel)."""
        self._channels[channel].discard(websocket)
        logger.debug(
            "WS disconnected — channel=%r remaining=%d",
            channel,
            len(self._channels[channel]),
        )

    async def broadcast(self, channel: str, message: dict) -> int:
        """
        Send *message* as JSON to every client on *channel*.

        Clients whose send fails are dropped from the channel.
        Returns the number of clients the message reached.
        """
        clients = self._channels[channel]
        if not clients:
            return 0

        payload = json.dumps(message, default=str)
        dead: list[WebSocket] = []
        for ws in list(clients):
            try:
                await ws.send_text(payload)
            except (WebSocketDisconnect, RuntimeError, OSError) as exc:
                logger.debug("WS send failed (channel=%r): %s — removing", channel, exc)
                dead.append(ws)

        for ws in dead:
            clients.discard(ws)
        return len(clients)

    async def points_sink(self, points: list[Point]) -> None:
        """BatchScheduler sink: push one emitted batch to the points channel."""
        await self.broadcast(POINTS, {"points": [p.to_dict() for p in points]})

    def connection_count(self, channel: str) -> int:
        return len(self._channels[channel])

    def all_counts(self) -> dict[str, int]:
        return {ch: len(conns) for ch, conns in self._channels.items()}


# Global singleton — imported by the app factory and main.py
ws_manager = WebSocketManager()
