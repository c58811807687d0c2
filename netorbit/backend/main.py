from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
import time
from typing import NoReturn

import uvicorn

from . import pipeline
from .api.main import create_app, set_scheduler, set_universe
from .api.ws_manager import UNIVERSE, ws_manager
from .config import ConfigError, Settings, UniverseConfig, VectorizerConfig, settings
from .metrics import METRICS
from .pipeline import init_queues
from .universe import UniverseAggregator
from .vectorizer import BatchScheduler, PipelineState

logger = logging.getLogger("netorbit.main")


# ---------------------------------------------------------------------------
# Periodic broadcasters
# ---------------------------------------------------------------------------

async def universe_broadcaster(
    universe: UniverseAggregator,
    shutdown_event: asyncio.Event,
    interval: float = 1.0,
) -> None:
    """Push a fresh UniverseState to /ws/universe subscribers every *interval* s."""
    while not shutdown_event.is_set():
        await asyncio.sleep(interval)
        if ws_manager.connection_count(UNIVERSE) == 0:
            # still prune so idle tabs do not pile up between API reads
            universe.prune()
            continue
        await ws_manager.broadcast(UNIVERSE, universe.get_state().to_dict())


async def stats_reporter(
    scheduler: BatchScheduler,
    universe: UniverseAggregator,
    shutdown_event: asyncio.Event,
    interval: float = 30.0,
) -> None:
    while not shutdown_event.is_set():
        await asyncio.sleep(interval)
        logger.info(
            "METRICS ingest=%s scheduler=%s universe=%s pipeline=%s ws=%s",
            METRICS.as_dict(),
            scheduler.stats,
            universe.stats,
            scheduler.state.summary(),
            ws_manager.all_counts(),
        )


# ---------------------------------------------------------------------------
# Wiring
# ---------------------------------------------------------------------------

def build_components(
    cfg: Settings,
    seed: int | None = None,
) -> tuple[BatchScheduler, UniverseAggregator]:
    """
    Construct the pipeline state, scheduler and universe from settings.

    Raises ConfigError when the settings are out of range.
    """
    try:
        vec_cfg = VectorizerConfig.from_settings(cfg)
        uni_cfg = UniverseConfig.from_settings(cfg)
    except ValueError as exc:
        raise ConfigError(str(exc)) from exc

    queue = init_queues(record_size=cfg.RECORD_QUEUE_SIZE)
    state = PipelineState(vec_cfg, seed=seed if seed is not None else cfg.RANDOM_SEED)
    scheduler = BatchScheduler(
        state,
        queue=queue,
        max_points=cfg.MAX_POINTS,
        tick_interval_ms=cfg.TICK_INTERVAL_MS,
    )
    universe = UniverseAggregator(
        window_duration_ms=uni_cfg.window_duration_ms,
        max_satellites_per_planet=uni_cfg.max_satellites_per_planet,
    )
    return scheduler, universe


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------

async def run(host: str, port: int, seed: int | None) -> None:
    shutdown_event = asyncio.Event()
    loop = asyncio.get_running_loop()

    def _signal_handler(_signum, _frame) -> None:
        logger.info("Shutdown signal received")
        loop.call_soon_threadsafe(shutdown_event.set)

    signal.signal(signal.SIGINT, _signal_handler)
    signal.signal(signal.SIGTERM, _signal_handler)

    scheduler, universe = build_components(settings, seed=seed)
    scheduler.add_sink(ws_manager.points_sink)
    set_scheduler(scheduler)
    set_universe(universe)

    app = create_app()
    uv_config = uvicorn.Config(
        app,
        host=host,
        port=port,
        log_level="warning",
        loop="none",
    )
    uv_server = uvicorn.Server(uv_config)

    tasks = [
        asyncio.create_task(scheduler.run(), name="scheduler"),
        asyncio.create_task(
            universe_broadcaster(
                universe, shutdown_event, settings.UNIVERSE_PUSH_INTERVAL_SECONDS
            ),
            name="universe_ws",
        ),
        asyncio.create_task(
            stats_reporter(scheduler, universe, shutdown_event), name="stats"
        ),
        asyncio.create_task(uv_server.serve(), name="api"),
    ]

    logger.info(
        "NetOrbit started — API=http://%s:%d  queue=%s  vectorizer=%s",
        host, port,
        pipeline.record_queue.maxsize or "unbounded",
        scheduler.state.config.model_dump(),
    )

    await shutdown_event.wait()

    uv_server.should_exit = True
    for t in tasks[:-1]:
        t.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)
    logger.info(
        "Final stats — scheduler=%s universe=%s at %s",
        scheduler.stats, universe.stats, time.strftime("%H:%M:%S"),
    )
    logger.info("NetOrbit stopped cleanly")


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="NetOrbit traffic embedding service")
    parser.add_argument("--host", default=settings.API_HOST)
    parser.add_argument("--port", type=int, default=settings.API_PORT)
    parser.add_argument(
        "--seed", type=int, default=None,
        help="seed every random source (overrides RANDOM_SEED)",
    )
    parser.add_argument(
        "--log-level", default=settings.LOG_LEVEL,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    return parser.parse_args()


def main() -> NoReturn:
    args = _parse_args()
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper()),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    try:
        asyncio.run(run(host=args.host, port=args.port, seed=args.seed))
    except ConfigError as e:
        print(f"ERROR: invalid configuration: {e}", file=sys.stderr)
        sys.exit(1)
    sys.exit(0)


if __name__ == "__main__":
    main()
