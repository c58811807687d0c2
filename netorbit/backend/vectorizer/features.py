"""
vectorizer/features.py

FeatureVectorizer — token set → fixed-width hashed feature vector.

Each token is weighted and accumulated at ``murmur32(token) % hash_dim``;
collisions simply add up (hashing-trick tradeoff).  Tokens whose document
frequency ratio falls outside ``[min_df_ratio, max_df_ratio]`` are skipped
like stopwords.

Weighting:
  count — every surviving token contributes 1
  tfidf — smoothed IDF ``ln((N + 1) / (df + 1)) + 1``; tf is always 1
          because tokens are deduplicated per record
"""

from __future__ import annotations

import math
from typing import Iterable

import numpy as np

from .hashing import DEFAULT_SEED, bucket
from .vocabulary import VocabularyTracker


class FeatureVectorizer:

    def __init__(
        self,
        hash_dim: int = 2048,
        weighting: str = "count",
        min_df_ratio: float = 0.0,
        max_df_ratio: float = 1.0,
        hash_seed: int = DEFAULT_SEED,
    ) -> None:
        self.hash_dim = hash_dim
        self.weighting = weighting
        self.min_df_ratio = min_df_ratio
        self.max_df_ratio = max_df_ratio
        self.hash_seed = hash_seed

    def token_weight(self, token: str, vocab: VocabularyTracker) -> float | None:
        """Weight *token* would receive, or None if the DF filter drops it."""
        n = max(1, vocab.doc_count)
        df = vocab.df(token)
        ratio = df / n
        if ratio < self.min_df_ratio or ratio > self.max_df_ratio:
            return None
        if self.weighting == "tfidf":
            return math.log((n + 1) / (df + 1)) + 1.0
        return 1.0

    def vectorize(self, tokens: Iterable[str], vocab: VocabularyTracker) -> np.ndarray:
        vec = np.zeros(self.hash_dim, dtype=np.float64)
        for token in tokens:
            weight = self.token_weight(token, vocab)
            if weight is None:
                continue
            vec[bucket(token, self.hash_dim, self.hash_seed)] += weight
        return vec
