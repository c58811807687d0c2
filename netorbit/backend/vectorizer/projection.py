"""
vectorizer/projection.py

RandomProjector — fixed random ±1 matrix reducing hash_dim → proj_dim.

The matrix is materialised lazily on the first project() call and then kept
for the lifetime of the projector, so the map is random but stable: the same
input always projects to the same output.  With ±1 entries this is a cheap
Johnson–Lindenstrauss style projection.
"""

from __future__ import annotations

import logging

import numpy as np

logger = logging.getLogger(__name__)


class RandomProjector:

    def __init__(self, hash_dim: int, proj_dim: int, rng: np.random.Generator) -> None:
        self.hash_dim = hash_dim
        self.proj_dim = proj_dim
        self._rng = rng
        self.matrix: np.ndarray | None = None

    def project(self, vec: np.ndarray) -> np.ndarray:
        """Dense matrix-vector product ``vec @ R`` (length proj_dim)."""
        vec = np.asarray(vec, dtype=np.float64)
        if vec.shape != (self.hash_dim,):
            raise ValueError(
                f"expected hashed vector of shape ({self.hash_dim},) — got {vec.shape}"
            )
        if self.matrix is None:
            self.matrix = self._build()
        return vec @ self.matrix

    def _build(self) -> np.ndarray:
        signs = self._rng.integers(0, 2, size=(self.hash_dim, self.proj_dim))
        logger.debug(
            "Random projection materialised — %dx%d", self.hash_dim, self.proj_dim
        )
        return np.where(signs == 1, 1.0, -1.0)
