"""
ingest/traffic_log.py

Rolling view of recent capture traffic for the stats endpoint.

Keeps the last RECENT_LIMIT parsed records (newest first) and a per-second
history of the cumulative record count.  A history bucket is only appended
when the count changed since the previous second, so idle periods cost
nothing.
"""

from __future__ import annotations

import threading
import time
from collections import deque
from typing import Any, Callable, Deque, Dict, List

from ..models import TrafficRecord

RECENT_LIMIT = 30
HISTORY_LIMIT = 3600    # one hour of one-second buckets


def _now_ms() -> float:
    return time.time() * 1000.0


class TrafficLog:
    """Thread-safe ring of recent records plus a per-second traffic history."""

    def __init__(
        self,
        recent_limit: int = RECENT_LIMIT,
        history_limit: int = HISTORY_LIMIT,
        clock: Callable[[], float] = _now_ms,
    ) -> None:
        self._recent: Deque[Dict[str, Any]] = deque(maxlen=recent_limit)
        self._history: Deque[Dict[str, int]] = deque(maxlen=history_limit)
        self._total = 0
        self._clock = clock
        self._lock = threading.Lock()

    def add(self, record: TrafficRecord) -> None:
        summary = {
            "requestId": record.request_id,
            "url": record.url,
            "method": record.method,
            "statusCode": record.status_code,
            "type": record.type,
            "timeStamp": record.timestamp,
            "requestHeadersSize": record.request_headers_size,
            "responseHeadersSize": record.response_headers_size,
        }
        second = int(self._clock() // 1000) * 1000
        with self._lock:
            self._recent.appendleft(summary)
            self._total += 1
            if self._history and self._history[-1]["time"] == second:
                self._history[-1]["value"] = self._total
            else:
                self._history.append({"time": second, "value": self._total})

    def recent(self) -> List[Dict[str, Any]]:
        """Newest first."""
        with self._lock:
            return [dict(r) for r in self._recent]

    def history(self) -> List[Dict[str, int]]:
        """Oldest first; value is the cumulative record count at that second."""
        with self._lock:
            return [dict(h) for h in self._history]

    def clear(self) -> None:
        with self._lock:
            self._recent.clear()
            self._history.clear()
            self._total = 0


# Module-level singleton fed by POST /api/records
TRAFFIC_LOG = TrafficLog()
