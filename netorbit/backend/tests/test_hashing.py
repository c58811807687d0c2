"""
tests/test_hashing.py

Tests for vectorizer/hashing.py — stable 32-bit token hashing.
"""

from __future__ import annotations

from netorbit.backend.vectorizer.hashing import DEFAULT_SEED, bucket, murmur32


class TestMurmur32:

    def test_deterministic(self):
        assert murmur32("host:example.com") == murmur32("host:example.com")

    def test_fits_in_32_bits(self):
        for token in ("", "a", "method:GET", "x" * 500, "ünïcødé"):
            assert 0 <= murmur32(token) < 2**32

    def test_default_seed(self):
        assert murmur32("abc") == murmur32("abc", DEFAULT_SEED)

    def test_seed_changes_hash(self):
        assert murmur32("abc", 1) != murmur32("abc", 2)

    def test_last_char_changes_hash(self):
        assert murmur32("host:a") != murmur32("host:b")


class TestBucket:

    def test_within_dim(self):
        for i in range(200):
            assert 0 <= bucket(f"tok{i}", 16) < 16

    def test_matches_modulo(self):
        assert bucket("type:script", 2048) == murmur32("type:script") % 2048
