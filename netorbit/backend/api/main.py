"""
api/main.py

FastAPI application factory.

The pipeline objects are created by backend/main.py and handed over with
set_scheduler() / set_universe() before the app starts serving; routes
resolve them through the get_* accessors.

REST:
    POST /api/records    ingest one record or a list of records
    GET  /api/points     retained embedding points
    GET  /api/universe   pruned + coagulated traffic tree
    GET  /api/config     current tunables
    PUT  /api/config     update runtime tunables
    GET  /api/stats      counters from every stage
WebSockets:
    /ws/points, /ws/universe
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from fastapi.websockets import WebSocketDisconnect

from ..universe import UniverseAggregator
from ..vectorizer import BatchScheduler
from .routes import config as config_router
from .routes import points as points_router
from .routes import records as records_router
from .routes import stats as stats_router
from .routes import universe as universe_router
from .ws_manager import POINTS, UNIVERSE, ws_manager

logger = logging.getLogger(__name__)

_scheduler: BatchScheduler | None = None
_universe: UniverseAggregator | None = None


def set_scheduler(scheduler: BatchScheduler | None) -> None:
    global _scheduler
    _scheduler = scheduler


def get_scheduler() -> BatchScheduler:
    if _scheduler is None:
        raise RuntimeError("Scheduler not initialised — call set_scheduler() first")
    return _scheduler


def set_universe(universe: UniverseAggregator | None) -> None:
    global _universe
    _universe = universe


def get_universe() -> UniverseAggregator:
    if _universe is None:
        raise RuntimeError("Universe not initialised — call set_universe() first")
    return _universe


def create_app() -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("FastAPI startup")
        yield
        logger.info("FastAPI shutdown")

    app = FastAPI(
        title="NetOrbit — Browser Traffic Embedding & Universe",
        version="1.0.0",
        description="Streaming embedding and tab-centric summary of browser traffic",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(records_router.router,  prefix="/api")
    app.include_router(points_router.router,   prefix="/api")
    app.include_router(universe_router.router, prefix="/api")
    app.include_router(config_router.router,   prefix="/api")
    app.include_router(stats_router.router,    prefix="/api")

    @app.websocket("/ws/points")
    async def ws_points(websocket: WebSocket):
        await ws_manager.connect(websocket, POINTS)
        try:
            while True:
                await websocket.receive_text()
        except WebSocketDisconnect:
            pass
        finally:
            await ws_manager.disconnect(websocket, POINTS)

    @app.websocket("/ws/universe")
    async def ws_universe(websocket: WebSocket):
        await ws_manager.connect(websocket, UNIVERSE)
        try:
            while True:
                await websocket.receive_text()
        except WebSocketDisconnect:
            pass
        finally:
            await ws_manager.disconnect(websocket, UNIVERSE)

    @app.get("/health")
    async def health() -> dict:
        return {"status": "ok", "ws_connections": ws_manager.all_counts()}

    return app
