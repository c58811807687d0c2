"""
tests/test_ws_manager.py

Tests for api/ws_manager.py — WebSocket channel manager.
"""

from __future__ import annotations

import json
import math
from unittest.mock import AsyncMock

import pytest

from netorbit.backend.api.ws_manager import POINTS, UNIVERSE, WebSocketManager
from netorbit.backend.models import Point


@pytest.fixture
def manager():
    return WebSocketManager()


def mock_ws(send_side_effect=None):
    ws = AsyncMock()
    ws.accept = AsyncMock()
    ws.send_text = AsyncMock(side_effect=send_side_effect)
    return ws


def make_point(pid: str, y=(0.1, 0.2, 0.3)) -> Point:
    return Point(
        id=pid, url="https://example.com/", ts=1.0, y=list(y), cluster=0,
        size=10, method="GET", type="script", status=200,
    )


class TestConnect:

    @pytest.mark.asyncio
    async def test_connect_accepts_and_registers(self, manager):
        ws = mock_ws()
        await manager.connect(ws, POINTS)
        ws.accept.assert_awaited_once()
        assert manager.connection_count(POINTS) == 1

    @pytest.mark.asyncio
    async def test_channels_are_independent(self, manager):
        await manager.connect(mock_ws(), POINTS)
        await manager.connect(mock_ws(), UNIVERSE)
        await manager.connect(mock_ws(), UNIVERSE)
        assert manager.all_counts() == {POINTS: 1, UNIVERSE: 2}

    @pytest.mark.asyncio
    async def test_disconnect(self, manager):
        ws = mock_ws()
        await manager.connect(ws, POINTS)
        await manager.disconnect(ws, POINTS)
        assert manager.connection_count(POINTS) == 0

    @pytest.mark.asyncio
    async def test_disconnect_unknown_is_noop(self, manager):
        await manager.disconnect(mock_ws(), POINTS)
        assert manager.connection_count(POINTS) == 0


class TestBroadcast:

    @pytest.mark.asyncio
    async def test_sends_json_to_all(self, manager):
        a, b = mock_ws(), mock_ws()
        await manager.connect(a, UNIVERSE)
        await manager.connect(b, UNIVERSE)

        reached = await manager.broadcast(UNIVERSE, {"hello": 1})

        assert reached == 2
        a.send_text.assert_awaited_once_with(json.dumps({"hello": 1}))
        b.send_text.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_empty_channel(self, manager):
        assert await manager.broadcast(POINTS, {"x": 1}) == 0

    @pytest.mark.asyncio
    async def test_dead_client_removed(self, manager):
        alive = mock_ws()
        dead = mock_ws(send_side_effect=RuntimeError("closed"))
        await manager.connect(alive, POINTS)
        await manager.connect(dead, POINTS)

        reached = await manager.broadcast(POINTS, {"x": 1})

        assert reached == 1
        assert manager.connection_count(POINTS) == 1


class TestPointsSink:

    @pytest.mark.asyncio
    async def test_points_sink_payload(self, manager):
        ws = mock_ws()
        await manager.connect(ws, POINTS)

        await manager.points_sink([make_point("a"), make_point("b", y=(math.nan,) * 3)])

        payload = json.loads(ws.send_text.await_args.args[0])
        assert [p["id"] for p in payload["points"]] == ["a", "b"]
        assert payload["points"][1]["y"] == [None, None, None]

    @pytest.mark.asyncio
    async def test_points_sink_without_clients(self, manager):
        await manager.points_sink([make_point("a")])
        assert manager.connection_count(POINTS) == 0
