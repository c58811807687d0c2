"""
vectorizer/scaler.py

OnlineScaler — per-dimension EMA mean/variance standardisation.

Update recurrence with decay d:
    mean_new = d * mean_old + (1 - d) * x
    var      = d * var + (1 - d) * (x - mean_old) * (x - mean_new)

scale(x) = (x - mean) / sqrt(max(var, 0)).  Dimensions whose standard
deviation is below EPSILON are near-constant; they map to 0 instead of being
divided by ~0, and their number is reported in ``degenerate_dims``.
"""

from __future__ import annotations

import numpy as np

EPSILON = 1e-6


class OnlineScaler:

    def __init__(self, dim: int, decay: float = 0.995) -> None:
        self.dim = dim
        self.decay = decay
        self.mean = np.zeros(dim, dtype=np.float64)
        self.var = np.zeros(dim, dtype=np.float64)
        self.degenerate_dims: int = 0
        """Near-constant dimensions zeroed by the most recent scale() call."""

    def update(self, x: np.ndarray) -> None:
        d = self.decay
        old_mean = self.mean.copy()
        self.mean = d * old_mean + (1.0 - d) * x
        self.var = d * self.var + (1.0 - d) * (x - old_mean) * (x - self.mean)

    def scale(self, x: np.ndarray) -> np.ndarray:
        std = np.sqrt(np.maximum(self.var, 0.0))
        ok = std > EPSILON
        self.degenerate_dims = int(self.dim - np.count_nonzero(ok))
        out = np.zeros(self.dim, dtype=np.float64)
        out[ok] = (x[ok] - self.mean[ok]) / std[ok]
        return out

    def update_and_scale(self, x: np.ndarray) -> np.ndarray:
        x = np.asarray(x, dtype=np.float64)
        self.update(x)
        return self.scale(x)
