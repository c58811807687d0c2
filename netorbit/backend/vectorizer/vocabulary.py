"""
vectorizer/vocabulary.py

VocabularyTracker — bounded token document-frequency table.

Space-saving approximation: the table may grow to ``vocab_size * 1.2``
entries, after which it is compacted to the ``vocab_size`` most frequent
tokens.  A token evicted by compaction and seen again restarts from zero,
so its document frequency is biased low afterwards.  This is accepted; the
``tombstones`` counter records how many compactions have happened.

Thread safety: NOT thread-safe. Owned by the BatchScheduler's PipelineState.
"""

from __future__ import annotations

import heapq
import logging
from typing import Iterable

logger = logging.getLogger(__name__)

GROWTH_FACTOR = 1.2


class VocabularyTracker:
    """
    Tracks how many documents (records) each token appeared in.

    Args:
        vocab_size: Number of entries kept after a compaction.
    """

    def __init__(self, vocab_size: int = 1000) -> None:
        self.vocab_size = vocab_size
        self.counts: dict[str, int] = {}
        self.doc_count: int = 0
        self.tombstones: int = 0

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def add_document(self) -> int:
        """Count one more processed document and return the new total."""
        self.doc_count += 1
        return self.doc_count

    def observe(self, tokens: Iterable[str]) -> None:
        """Increment the frequency of every token, compacting if over budget."""
        for token in tokens:
            self.counts[token] = self.counts.get(token, 0) + 1
        if len(self.counts) > self.limit:
            self._compact()

    def df(self, token: str) -> int:
        return self.counts.get(token, 0)

    def df_ratio(self, token: str) -> float:
        """Document-frequency ratio ``count / docs processed so far``."""
        return self.df(token) / max(1, self.doc_count)

    def resize(self, vocab_size: int) -> None:
        """Change the budget; compacts straight away if the table is now over it."""
        self.vocab_size = vocab_size
        if len(self.counts) > self.limit:
            self._compact()

    @property
    def limit(self) -> float:
        return self.vocab_size * GROWTH_FACTOR

    def __len__(self) -> int:
        return len(self.counts)

    def __contains__(self, token: object) -> bool:
        return token in self.counts

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _compact(self) -> None:
        """Keep only the top ``vocab_size`` tokens by frequency."""
        before = len(self.counts)
        # nlargest is stable on ties, so first-seen tokens win
        kept = heapq.nlargest(self.vocab_size, self.counts.items(), key=lambda kv: kv[1])
        self.counts = dict(kept)
        self.tombstones += 1
        logger.debug(
            "Vocabulary compacted %d → %d entries (compaction #%d)",
            before,
            len(self.counts),
            self.tombstones,
        )
