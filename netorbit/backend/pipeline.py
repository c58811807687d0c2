"""
backend/pipeline.py

Defines the record queue shared by the API (producer) and the BatchScheduler
(consumer), plus the ring-buffer safe_put() helper used to enqueue without
blocking.

The queue is unbounded by default (RECORD_QUEUE_SIZE=0): the scheduler drains
it on every tick, so backpressure is applied downstream on the retained point
list instead.  When a positive size is configured, safe_put() drops the
*oldest* record when full rather than blocking the producer.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from .metrics import METRICS

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Queue definitions — import these from other modules
# ---------------------------------------------------------------------------

# Lazily initialised so tests can create fresh queues without import side effects.
# Call init_queues() once at startup (done inside main.py).

record_queue: asyncio.Queue | None = None


def init_queues(record_size: int = 0) -> asyncio.Queue:
    """
    Initialise the record queue and return it.

    Args:
        record_size: Maximum queued records; 0 means unbounded.
    """
    global record_queue
    record_queue = asyncio.Queue(maxsize=record_size)
    logger.info(
        "Pipeline queue initialised — record=%s",
        record_size or "unbounded",
    )
    return record_queue


# ---------------------------------------------------------------------------
# Ring-buffer put helper
# ---------------------------------------------------------------------------

def safe_put(queue: asyncio.Queue, item: Any) -> bool:
    """
    Non-blocking enqueue with ring-buffer drop semantics.

    If the queue is full, the *oldest* item is discarded to make room,
    METRICS.records_dropped is incremented, and a warning is logged.

    Returns:
        True  — item was enqueued successfully.
        False — item could not be enqueued.
    """
    if queue.full():
        try:
            queue.get_nowait()  # discard oldest item
            METRICS.records_dropped.inc()
            logger.warning(
                "Queue full (%d/%d) — oldest item dropped to make room",
                queue.qsize(),
                queue.maxsize,
            )
        except asyncio.QueueEmpty:
            pass  # queue was drained between the full() check and get_nowait()

    try:
        queue.put_nowait(item)
        return True
    except asyncio.QueueFull:
        METRICS.records_dropped.inc()
        logger.error("safe_put: queue still full after drop — item lost")
        return False
