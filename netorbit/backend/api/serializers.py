"""
api/serializers.py

Request/response models for the REST surface.
Points and universe snapshots are returned as the plain dicts produced by
Point.to_dict() / UniverseState.to_dict(), which already match the wire shape
the renderers expect.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel

_UNIVERSE_FIELDS = frozenset({"max_satellites_per_planet", "window_duration_ms"})


class IngestResponse(BaseModel):
    accepted: int
    rejected: int
    queue_depth: int


class ConfigResponse(BaseModel):
    vocab_size: int
    hash_dim: int
    emit_hz: float
    pca_dim: int
    proj_dim: int
    k_clusters: int
    batch: int
    decay: float
    weighting: Literal["count", "tfidf"]
    min_df_ratio: float
    max_df_ratio: float
    max_satellites_per_planet: int
    window_duration_ms: int


class ConfigUpdateRequest(BaseModel):
    vocab_size: int | None = None
    emit_hz: float | None = None
    batch: int | None = None
    weighting: Literal["count", "tfidf"] | None = None
    min_df_ratio: float | None = None
    max_df_ratio: float | None = None
    max_satellites_per_planet: int | None = None
    window_duration_ms: int | None = None

    def split(self) -> tuple[dict, dict]:
        """Return (vectorizer patch, universe patch) with unset fields dropped."""
        patch = self.model_dump(exclude_none=True)
        universe = {k: v for k, v in patch.items() if k in _UNIVERSE_FIELDS}
        vectorizer = {k: v for k, v in patch.items() if k not in _UNIVERSE_FIELDS}
        return vectorizer, universe


class StatsResponse(BaseModel):
    metrics: dict
    scheduler: dict
    universe: dict
    pipeline: dict
    recent: list[dict] = []
    history: list[dict] = []
