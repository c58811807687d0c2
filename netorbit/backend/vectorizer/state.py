"""
vectorizer/state.py

PipelineState — the single owned bundle of every stateful vectorizer stage.

Built once at startup from a VectorizerConfig and passed to the
BatchScheduler, which is its only writer.  All random initialisation
(projection matrix, PCA weights, k-means centroids) draws from one
numpy Generator, so two states built with the same seed and fed the same
records in the same order produce identical points.

Per-record chain:
    tokenize → vocab.observe → vectorize → project → scaler → PCA → k-means
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

import numpy as np

from ..config import VectorizerConfig
from ..metrics import METRICS
from ..models import Point, PointDiagnostics, TrafficRecord
from .features import FeatureVectorizer
from .kmeans import OnlineKMeans
from .pca import OnlinePCA
from .projection import RandomProjector
from .scaler import OnlineScaler
from .tokenizer import tokenize
from .vocabulary import VocabularyTracker

logger = logging.getLogger(__name__)

DIAGNOSTIC_VECTOR_DIMS = 100


class PipelineState:
    """
    Args:
        config: Validated tunables; structural sizes are fixed from here on.
        seed:   Seed for every random source. None → fresh OS entropy.
    """

    def __init__(self, config: VectorizerConfig | None = None, seed: int | None = None) -> None:
        self.config = config or VectorizerConfig()
        cfg = self.config
        self.rng = np.random.default_rng(seed)

        self.vocab = VocabularyTracker(cfg.vocab_size)
        self.vectorizer = FeatureVectorizer(
            hash_dim=cfg.hash_dim,
            weighting=cfg.weighting,
            min_df_ratio=cfg.min_df_ratio,
            max_df_ratio=cfg.max_df_ratio,
            hash_seed=cfg.hash_seed,
        )
        self.projector = RandomProjector(cfg.hash_dim, cfg.proj_dim, self.rng)
        self.scaler = OnlineScaler(cfg.proj_dim, cfg.decay)
        self.pca = OnlinePCA(
            cfg.proj_dim, cfg.pca_dim, rng=self.rng, learning_rate=cfg.pca_learning_rate
        )
        self.kmeans = OnlineKMeans(cfg.k_clusters, cfg.pca_dim, rng=self.rng)
        logger.debug("PipelineState initialised — %s", cfg.model_dump())

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def process(self, record: TrafficRecord) -> Point:
        """Run one record through every stage and return its Point."""
        self.vocab.add_document()
        tokens = tokenize(record)
        self.vocab.observe(tokens)

        hashed = self.vectorizer.vectorize(tokens, self.vocab)
        projected = self.projector.project(hashed)
        scaled = self.scaler.update_and_scale(projected)

        resets_before = self.pca.resets
        y = self.pca.transform(scaled)
        if self.pca.resets != resets_before:
            METRICS.pca_resets.inc()
        cluster = self.kmeans.assign(y)

        diagnostics = PointDiagnostics(
            tokens=sorted(tokens),
            vector=hashed[:DIAGNOSTIC_VECTOR_DIMS].tolist(),
            projected=projected.tolist(),
            scaled=scaled.tolist(),
            pca=y.tolist(),
            vocab_size=len(self.vocab),
            tombstones=self.vocab.tombstones,
            degenerate_dims=self.scaler.degenerate_dims,
        )
        return Point(
            id=record.request_id,
            url=record.url,
            ts=record.timestamp,
            y=y.tolist(),
            cluster=cluster,
            size=record.request_headers_size + record.response_headers_size,
            method=record.method,
            type=record.type,
            status=record.status_code,
            diagnostics=diagnostics,
        )

    def apply_config(self, partial: Mapping[str, Any]) -> VectorizerConfig:
        """
        Validate and apply runtime tunables.

        Raises ConfigError (and changes nothing) when *partial* is invalid.
        """
        new = self.config.merged(partial)
        self.config = new
        self.vectorizer.weighting = new.weighting
        self.vectorizer.min_df_ratio = new.min_df_ratio
        self.vectorizer.max_df_ratio = new.max_df_ratio
        if new.vocab_size != self.vocab.vocab_size:
            self.vocab.resize(new.vocab_size)
        logger.info("Applied vectorizer settings: %s", dict(partial))
        return new

    def summary(self) -> dict[str, Any]:
        return {
            "doc_count": self.vocab.doc_count,
            "vocab_entries": len(self.vocab),
            "tombstones": self.vocab.tombstones,
            "pca_resets": self.pca.resets,
            "cluster_counts": self.kmeans.counts.tolist(),
        }
