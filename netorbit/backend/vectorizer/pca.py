"""
vectorizer/pca.py

OnlinePCA — streaming eigenvector estimation with Oja's rule.

Keeps a ``proj_dim × pca_dim`` weight matrix W whose columns estimate the
leading eigenvectors of the input covariance.  For each input x:

  1. y = Wᵀx
  2. if y is not finite → drop W (re-initialised on next call), return NaNs
  3. for i = 0..pca_dim-1: residual = x - Σ_{k<i} y[k]·W[:,k]  (W already
     updated for k < i), then W[:,i] += lr · y[i] · residual
  4. renormalise every column with norm > 1e-6 to unit length

No history is stored and no batch decomposition ever runs.
"""

from __future__ import annotations

import logging

import numpy as np

logger = logging.getLogger(__name__)

_NORM_FLOOR = 1e-6


class OnlinePCA:

    def __init__(
        self,
        input_dim: int,
        output_dim: int = 3,
        rng: np.random.Generator | None = None,
        learning_rate: float = 0.05,
    ) -> None:
        self.input_dim = input_dim
        self.output_dim = output_dim
        self.learning_rate = learning_rate
        self._rng = rng if rng is not None else np.random.default_rng()
        self.weights: np.ndarray | None = None
        self.resets: int = 0

    def transform(self, x: np.ndarray) -> np.ndarray:
        """Embed *x* and learn from it. Returns a NaN vector after a reset."""
        x = np.asarray(x, dtype=np.float64)
        if self.weights is None:
            self.weights = self._rng.random((self.input_dim, self.output_dim)) - 0.5
        W = self.weights

        with np.errstate(all="ignore"):
            y = W.T @ x
        if not np.all(np.isfinite(y)):
            logger.warning("PCA result is not finite — resetting weights (y=%s)", y)
            self.reset()
            return np.full(self.output_dim, np.nan)

        lr = self.learning_rate
        for i in range(self.output_dim):
            residual = x - W[:, :i] @ y[:i]
            W[:, i] += lr * y[i] * residual

        norms = np.linalg.norm(W, axis=0)
        live = norms > _NORM_FLOOR
        W[:, live] /= norms[live]
        return y

    def reset(self) -> None:
        self.weights = None
        self.resets += 1
