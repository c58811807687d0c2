"""
backend/metrics.py

Lightweight thread-safe counters for the ingestion and vectorizer pipeline.
No external dependencies — uses Python's threading.Lock, since records can be
posted from the API worker while the scheduler tick reads the counters.

Usage:
    from backend.metrics import METRICS
    METRICS.records_received.inc()
    print(METRICS.as_dict())
"""

import threading


class Counter:
    """A thread-safe integer counter."""

    __slots__ = ("_value", "_lock")

    def __init__(self) -> None:
        self._value = 0
        self._lock = threading.Lock()

    def inc(self, amount: int = 1) -> None:
        with self._lock:
            self._value += amount

    def reset(self) -> None:
        with self._lock:
            self._value = 0

    @property
    def value(self) -> int:
        with self._lock:
            return self._value

    def __repr__(self) -> str:  # pragma: no cover
        return f"Counter({self._value})"


class Metrics:
    """Singleton holding all pipeline counters."""

    def __init__(self) -> None:
        # --- Ingestion ---
        self.records_received: Counter = Counter()
        """Raw records handed to parse_record()."""

        self.records_parse_error: Counter = Counter()
        """Records rejected because they had no usable URL."""

        self.records_dropped: Counter = Counter()
        """Records discarded because a bounded record queue was full."""

        self.bytes_out: Counter = Counter()
        """Request header bytes of accepted records."""

        self.bytes_in: Counter = Counter()
        """Response header bytes of accepted records."""

        # --- Vectorizer ---
        self.points_emitted: Counter = Counter()
        """Points handed to the sinks."""

        self.pca_resets: Counter = Counter()
        """Times OnlinePCA hit a non-finite embedding and re-initialised."""

    def as_dict(self) -> dict:
        """Return all counters as a plain dict (safe for JSON serialisation)."""
        return {
            "records_received": self.records_received.value,
            "records_parse_error": self.records_parse_error.value,
            "records_dropped": self.records_dropped.value,
            "bytes_out": self.bytes_out.value,
            "bytes_in": self.bytes_in.value,
            "points_emitted": self.points_emitted.value,
            "pca_resets": self.pca_resets.value,
        }

    def reset_all(self) -> None:
        """Reset every counter to zero (useful in tests)."""
        for attr in vars(self).values():
            if isinstance(attr, Counter):
                attr.reset()


# Module-level singleton — import from here everywhere
METRICS = Metrics()
