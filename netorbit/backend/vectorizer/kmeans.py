"""
vectorizer/kmeans.py

OnlineKMeans — incremental nearest-centroid clustering of embeddings.

assign(y) picks the centroid with the smallest squared Euclidean distance
(lowest index wins a tie), bumps its member count and moves it toward y with
learning rate 1/count, i.e. each centroid is the running mean of the points
assigned to it.  Assignments are never revisited.

Non-finite embeddings (the PCA reset sentinel) are not assigned: they get
NO_CLUSTER and leave centroids and counts untouched.
"""

from __future__ import annotations

import numpy as np

NO_CLUSTER = -1


class OnlineKMeans:

    def __init__(
        self,
        k: int = 8,
        dim: int = 3,
        rng: np.random.Generator | None = None,
    ) -> None:
        self.k = k
        self.dim = dim
        self._rng = rng if rng is not None else np.random.default_rng()
        self.centers: np.ndarray | None = None
        self.counts = np.zeros(k, dtype=np.int64)

    def assign(self, y: np.ndarray) -> int:
        y = np.asarray(y, dtype=np.float64)
        if not np.all(np.isfinite(y)):
            return NO_CLUSTER
        if self.centers is None:
            self.centers = self._rng.random((self.k, self.dim)) * 2.0 - 1.0

        dists = np.sum((self.centers - y) ** 2, axis=1)
        best = int(np.argmin(dists))  # first minimum on ties
        self.counts[best] += 1
        self.centers[best] += (y - self.centers[best]) / self.counts[best]
        return best

    @property
    def total_assigned(self) -> int:
        return int(self.counts.sum())
