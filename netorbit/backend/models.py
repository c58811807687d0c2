"""
backend/models.py

Shared dataclasses for every stage of the pipeline.
Defining them here locks the inter-stage contracts early so the vectorizer,
the universe aggregator and the API can be developed against a stable
interface.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, List, Tuple


# ---------------------------------------------------------------------------
# Stage 1 — Ingestion output
# ---------------------------------------------------------------------------

@dataclass(slots=True)
class TrafficRecord:
    """One observed request/response pair, as reported by the capture side."""

    request_id: str
    url: str
    method: str = "GET"
    status_code: int = 0
    type: str = "other"
    """Resource type: 'main_frame' | 'script' | 'xmlhttprequest' | 'image' | ..."""

    tab_id: int | None = None
    """Originating browser tab. None means unassociated (background) traffic."""

    timestamp: float = 0.0
    """Unix epoch milliseconds."""

    request_headers_size: int = 0
    response_headers_size: int = 0
    request_content_length: int = 0
    response_content_length: int = 0

    latency_ms: float | None = None
    """Request→response latency. None when the capture side could not measure it."""

    response_headers: List[Tuple[str, str]] = field(default_factory=list)
    """(name, value) pairs in arrival order."""

    @property
    def request_bytes(self) -> int:
        return self.request_headers_size + self.request_content_length

    @property
    def response_bytes(self) -> int:
        return self.response_headers_size + self.response_content_length

    @property
    def total_bytes(self) -> int:
        return self.request_bytes + self.response_bytes

    @property
    def content_bytes(self) -> int:
        """Body bytes only, both directions."""
        return self.request_content_length + self.response_content_length

    @property
    def has_tab(self) -> bool:
        # tab 0 is the browser-internal pseudo tab, treated like -1
        return self.tab_id is not None and self.tab_id > 0

    def header(self, name: str) -> str | None:
        """Return the first response header value matching *name* (case-insensitive)."""
        wanted = name.lower()
        for key, value in self.response_headers:
            if key.lower() == wanted:
                return value
        return None


# ---------------------------------------------------------------------------
# Stage 2 — Vectorizer output
# ---------------------------------------------------------------------------

@dataclass
class PointDiagnostics:
    """Intermediate values captured while a record moved through the pipeline."""

    tokens: List[str] = field(default_factory=list)
    vector: List[float] = field(default_factory=list)
    """First 100 components of the hashed feature vector."""

    projected: List[float] = field(default_factory=list)
    scaled: List[float] = field(default_factory=list)
    pca: List[float] = field(default_factory=list)
    vocab_size: int = 0
    tombstones: int = 0
    degenerate_dims: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "tokens": list(self.tokens),
            "vector": list(self.vector),
            "projected": list(self.projected),
            "scaled": list(self.scaled),
            "pca": [_finite_or_none(v) for v in self.pca],
            "vocabSize": self.vocab_size,
            "tombstones": self.tombstones,
            "degenerateDims": self.degenerate_dims,
        }


@dataclass
class Point:
    """One fully processed record, ready for display."""

    id: str
    url: str
    ts: float
    y: List[float]
    """Embedding of length pca_dim. All-NaN when PCA had to reset."""

    cluster: int
    """Nearest centroid id, or -1 for a NaN embedding."""

    size: int
    method: str
    type: str
    status: int
    diagnostics: PointDiagnostics = field(default_factory=PointDiagnostics)

    @property
    def is_renderable(self) -> bool:
        return all(math.isfinite(v) for v in self.y)

    def to_dict(self) -> dict[str, Any]:
        """Wire shape consumed by the renderers. NaN is sent as null."""
        return {
            "id": self.id,
            "url": self.url,
            "ts": self.ts,
            "y": [_finite_or_none(v) for v in self.y],
            "cluster": self.cluster,
            "size": self.size,
            "method": self.method,
            "type": self.type,
            "status": self.status,
            "diagnostics": self.diagnostics.to_dict(),
        }


def _finite_or_none(v: float) -> float | None:
    return float(v) if math.isfinite(v) else None
