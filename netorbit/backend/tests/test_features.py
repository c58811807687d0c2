"""
tests/test_features.py

Tests for vectorizer/features.py — hashed feature vectors, count/tfidf
weighting and the document-frequency filter.
"""

from __future__ import annotations

import math

import numpy as np
import pytest

from netorbit.backend.vectorizer.features import FeatureVectorizer
from netorbit.backend.vectorizer.hashing import bucket
from netorbit.backend.vectorizer.vocabulary import VocabularyTracker


@pytest.fixture
def vocab() -> VocabularyTracker:
    """Ten documents: token A in the first only, token B in all of them."""
    v = VocabularyTracker(1000)
    for i in range(10):
        v.add_document()
        v.observe(["A", "B"] if i == 0 else ["B"])
    return v


class TestCountWeighting:

    def test_shape_and_dtype(self, vocab):
        vec = FeatureVectorizer(hash_dim=64).vectorize(["A"], vocab)
        assert vec.shape == (64,)
        assert vec.dtype == np.float64

    def test_each_token_contributes_one(self, vocab):
        fv = FeatureVectorizer(hash_dim=2048)
        vec = fv.vectorize(["A", "B"], vocab)
        assert vec.sum() == 2.0
        assert vec[bucket("A", 2048)] >= 1.0

    def test_empty_tokens_give_zero_vector(self, vocab):
        assert not FeatureVectorizer(hash_dim=32).vectorize([], vocab).any()

    def test_collisions_add_up(self):
        seen: dict[int, str] = {}
        pair = None
        for i in range(100):
            token = f"tok{i}"
            b = bucket(token, 16)
            if b in seen:
                pair = (seen[b], token, b)
                break
            seen[b] = token
        assert pair is not None
        first, second, b = pair

        vec = FeatureVectorizer(hash_dim=16).vectorize([first, second], VocabularyTracker(128))
        assert vec[b] == 2.0


class TestTfidfWeighting:

    def test_rare_token_outweighs_common(self, vocab):
        fv = FeatureVectorizer(weighting="tfidf")
        assert fv.token_weight("A", vocab) > fv.token_weight("B", vocab)

    def test_smoothed_idf_values(self, vocab):
        fv = FeatureVectorizer(weighting="tfidf")
        assert fv.token_weight("A", vocab) == pytest.approx(math.log(11 / 2) + 1)
        assert fv.token_weight("B", vocab) == pytest.approx(1.0)

    def test_vector_carries_idf(self, vocab):
        fv = FeatureVectorizer(hash_dim=2048, weighting="tfidf")
        vec = fv.vectorize(["A"], vocab)
        assert vec[bucket("A", 2048)] == pytest.approx(math.log(11 / 2) + 1)


class TestDfFilter:

    def test_max_ratio_drops_common_token(self, vocab):
        fv = FeatureVectorizer(hash_dim=64, max_df_ratio=0.5)
        assert fv.token_weight("B", vocab) is None
        assert not fv.vectorize(["B"], vocab).any()

    def test_min_ratio_drops_rare_token(self, vocab):
        fv = FeatureVectorizer(min_df_ratio=0.5)
        assert fv.token_weight("A", vocab) is None
        assert fv.token_weight("B", vocab) == 1.0

    def test_bounds_inclusive(self, vocab):
        fv = FeatureVectorizer(min_df_ratio=0.1, max_df_ratio=1.0)
        assert fv.token_weight("A", vocab) == 1.0
        assert fv.token_weight("B", vocab) == 1.0
