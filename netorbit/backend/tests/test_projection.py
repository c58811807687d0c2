"""
tests/test_projection.py

Tests for vectorizer/projection.py — lazy, stable ±1 random projection.
"""

from __future__ import annotations

import numpy as np
import pytest

from netorbit.backend.vectorizer.projection import RandomProjector


def make_projector(seed: int = 0, hash_dim: int = 64, proj_dim: int = 8) -> RandomProjector:
    return RandomProjector(hash_dim, proj_dim, np.random.default_rng(seed))


class TestRandomProjector:

    def test_matrix_is_lazy(self):
        p = make_projector()
        assert p.matrix is None
        p.project(np.zeros(64))
        assert p.matrix.shape == (64, 8)

    def test_entries_are_plus_minus_one(self):
        p = make_projector()
        p.project(np.zeros(64))
        assert set(np.unique(p.matrix)) <= {-1.0, 1.0}

    def test_output_shape(self):
        assert make_projector().project(np.ones(64)).shape == (8,)

    def test_matrix_stable_across_calls(self):
        p = make_projector()
        x = np.arange(64, dtype=float)
        first = p.project(x)
        matrix = p.matrix
        second = p.project(x)
        assert p.matrix is matrix
        np.testing.assert_array_equal(first, second)

    def test_same_seed_same_projection(self):
        x = np.linspace(-1, 1, 64)
        np.testing.assert_array_equal(make_projector(7).project(x), make_projector(7).project(x))

    def test_linear(self):
        p = make_projector()
        a = np.random.default_rng(1).normal(size=64)
        b = np.random.default_rng(2).normal(size=64)
        np.testing.assert_allclose(p.project(a + b), p.project(a) + p.project(b))

    def test_wrong_width_rejected(self):
        with pytest.raises(ValueError):
            make_projector().project(np.zeros(32))
