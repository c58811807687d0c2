"""
vectorizer/scheduler.py

BatchScheduler — the single consumer that drives the vectorizer pipeline.

Producers (the ingestion API) call enqueue() at any rate.  Every
TICK_INTERVAL_MS the scheduler drains up to ``batch`` records in FIFO order,
runs each through PipelineState.process(), and parks the resulting Points in
a pending buffer.  Emission to the sinks is rate-limited separately: at most
``emit_hz`` times per second the pending points are moved into the retained
point list and handed to every registered sink.

Backpressure:
  - retained points are a deque(maxlen=max_points) — oldest evicted first
  - pending points are bounded by the same size
  - a bounded record queue (RECORD_QUEUE_SIZE > 0) drops its oldest record

A slow tick only delays the next one; nothing is interrupted mid-record.

Stats dict (exposed through /api/stats):
    records_enqueued   — records accepted by enqueue()
    records_processed  — records turned into Points
    records_failed     — records whose processing raised
    points_emitted     — Points handed to the sinks
    points_evicted     — Points pushed out of the retained/pending buffers
    emissions          — number of rate-limited emissions
    queue_depth        — records waiting at the end of the last tick

Thread safety: NOT thread-safe. Called exclusively from asyncio coroutines.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import deque
from typing import Awaitable, Callable, Iterable

from ..metrics import METRICS
from ..models import Point, TrafficRecord
from ..pipeline import safe_put
from .state import PipelineState

logger = logging.getLogger(__name__)

PointSink = Callable[[list[Point]], Awaitable[None]]


def _monotonic_ms() -> float:
    return time.monotonic() * 1000.0


class BatchScheduler:
    """
    Args:
        state:            Pipeline state this scheduler exclusively owns.
        queue:            Record queue to drain (a fresh unbounded one if None).
        max_points:       Retained Point budget.
        tick_interval_ms: Delay between drains in run().
        clock:            Millisecond monotonic clock used for rate limiting.
    """

    def __init__(
        self,
        state: PipelineState,
        queue: asyncio.Queue | None = None,
        max_points: int = 2_500,
        tick_interval_ms: int = 50,
        clock: Callable[[], float] = _monotonic_ms,
    ) -> None:
        self.state = state
        self._queue = queue if queue is not None else asyncio.Queue()
        self._max_points = max_points
        self._tick_interval = tick_interval_ms / 1000.0
        self._clock = clock

        self._retained: deque[Point] = deque(maxlen=max_points)
        self._pending: deque[Point] = deque(maxlen=max_points)
        self._sinks: list[PointSink] = []
        self._last_emit_ms: float | None = None

        self.stats: dict[str, int] = {
            "records_enqueued": 0,
            "records_processed": 0,
            "records_failed": 0,
            "points_emitted": 0,
            "points_evicted": 0,
            "emissions": 0,
            "queue_depth": 0,
        }

    # ------------------------------------------------------------------
    # Producer side
    # ------------------------------------------------------------------

    def enqueue(self, record: TrafficRecord) -> bool:
        """Queue one record for the next tick. Never blocks."""
        ok = safe_put(self._queue, record)
        if ok:
            self.stats["records_enqueued"] += 1
        return ok

    def add_sink(self, sink: PointSink) -> None:
        """Register a coroutine function called with every emitted batch."""
        self._sinks.append(sink)

    # ------------------------------------------------------------------
    # Consumer side
    # ------------------------------------------------------------------

    def tick(self, now_ms: float | None = None) -> list[Point]:
        """
        Drain one batch, then emit if the rate limit allows.

        Returns the Points emitted by this tick (empty when rate-limited or
        when nothing was pending).
        """
        for record in self._drain(self.state.config.batch):
            try:
                point = self.state.process(record)
            except Exception:
                self.stats["records_failed"] += 1
                logger.exception("Failed to vectorize record %r", record.request_id)
                continue
            self.stats["records_processed"] += 1
            self._park(point)
            logger.debug(
                "Processed record %s → cluster=%d y=%s",
                point.id, point.cluster, point.y,
            )
        self.stats["queue_depth"] = self._queue.qsize()

        now = self._clock() if now_ms is None else now_ms
        if not self._pending or not self._rate_allows(now):
            return []
        self._last_emit_ms = now
        return self.flush()

    def flush(self) -> list[Point]:
        """Move every pending Point into the retained list, ignoring the rate limit."""
        if not self._pending:
            return []
        batch = list(self._pending)
        self._pending.clear()

        overflow = len(self._retained) + len(batch) - self._max_points
        if overflow > 0:
            self.stats["points_evicted"] += min(overflow, len(self._retained))
        self._retained.extend(batch)

        self.stats["points_emitted"] += len(batch)
        self.stats["emissions"] += 1
        METRICS.points_emitted.inc(len(batch))
        return batch

    async def run(self) -> None:
        """
        Tick until cancelled.

        On CancelledError, pending points are flushed to the sinks before
        re-raising so no processed point is silently lost on shutdown.
        """
        logger.info(
            "BatchScheduler started — tick=%.0fms batch=%d emit_hz=%.1f max_points=%d",
            self._tick_interval * 1000,
            self.state.config.batch,
            self.state.config.emit_hz,
            self._max_points,
        )
        try:
            while True:
                started = time.monotonic()
                emitted = self.tick()
                if emitted:
                    await self._notify(emitted)
                elapsed = time.monotonic() - started
                await asyncio.sleep(max(0.0, self._tick_interval - elapsed))
        except asyncio.CancelledError:
            logger.info("BatchScheduler cancellation received — flushing points…")
            remaining = self.flush()
            if remaining:
                await self._notify(remaining)
            logger.info("BatchScheduler shutdown — final stats: %s", self.stats)
            raise

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    def points(self, limit: int | None = None, renderable_only: bool = False) -> list[Point]:
        """Copy of the retained points, oldest first; *limit* keeps the newest."""
        pts: Iterable[Point] = self._retained
        if renderable_only:
            pts = [p for p in pts if p.is_renderable]
        out = list(pts)
        if limit is not None:
            out = out[-limit:] if limit > 0 else []
        return out

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    @property
    def queue_depth(self) -> int:
        return self._queue.qsize()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _drain(self, limit: int) -> list[TrafficRecord]:
        batch: list[TrafficRecord] = []
        while len(batch) < limit:
            try:
                batch.append(self._queue.get_nowait())
            except asyncio.QueueEmpty:
                break
            self._queue.task_done()
        return batch

    def _park(self, point: Point) -> None:
        if len(self._pending) == self._max_points:
            self.stats["points_evicted"] += 1
        self._pending.append(point)

    def _rate_allows(self, now_ms: float) -> bool:
        if self._last_emit_ms is None:
            return True
        return now_ms - self._last_emit_ms >= 1000.0 / self.state.config.emit_hz

    async def _notify(self, batch: list[Point]) -> None:
        for sink in self._sinks:
            try:
                await sink(batch)
            except Exception:
                logger.exception("Point sink %r failed", sink)
