"""
vectorizer/hashing.py

Deterministic 32-bit string hash used by the hashing trick.

Uses the MurmurHash2 multiply constant with a per-character xor/multiply/shift
round and a final avalanche.  Stable across processes and platforms (unlike
the built-in hash(), which is salted per interpreter), not cryptographic.
"""

from __future__ import annotations

_M = 0x5BD1E995
_MASK = 0xFFFFFFFF

DEFAULT_SEED = 1337


def murmur32(text: str, seed: int = DEFAULT_SEED) -> int:
    """Hash *text* to an unsigned 32-bit integer."""
    h = seed & _MASK
    for ch in text:
        h ^= ord(ch)
        h = (h * _M) & _MASK
        h ^= h >> 13
    h = (h * _M) & _MASK
    h ^= h >> 15
    return h


def bucket(token: str, dim: int, seed: int = DEFAULT_SEED) -> int:
    """Index of *token* in a hashed vector of width *dim*."""
    return murmur32(token, seed) % dim
