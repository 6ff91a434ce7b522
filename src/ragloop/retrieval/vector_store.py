"""Vector index contract and the in-memory implementation."""

from __future__ import annotations

import threading
from collections.abc import Sequence
from math import sqrt
from typing import Protocol

from ragloop.types import IndexEntry, Match, Segment


class VectorIndex(Protocol):
    """Minimal similarity-search contract used by ingestion and retrieval."""

    def add(self, segment: Segment, embedding: Sequence[float]) -> IndexEntry:
        """Append one segment with its embedding."""

    def add_many(
        self, segments: list[Segment], embeddings: list[list[float]]
    ) -> list[IndexEntry]:
        """Append segments with their embeddings, preserving order."""

    def search(
        self, query_embedding: Sequence[float], k: int, min_score: float
    ) -> list[Match]:
        """Return at most `k` matches scoring >= `min_score`, best first."""


class InMemoryVectorIndex:
    """Append-only index with brute-force cosine search.

    Writers are serialized by a lock; readers work on a snapshot of the entry
    list, so a search never observes a half-applied batch.
    """

    def __init__(self) -> None:
        self._entries: tuple[IndexEntry, ...] = ()
        self._write_lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def add(self, segment: Segment, embedding: Sequence[float]) -> IndexEntry:
        return self.add_many([segment], [list(embedding)])[0]

    def add_many(
        self, segments: list[Segment], embeddings: list[list[float]]
    ) -> list[IndexEntry]:
        if len(segments) != len(embeddings):
            raise ValueError("segments and embeddings must have the same length")
        with self._write_lock:
            base = len(self._entries)
            added = [
                IndexEntry(segment=segment, embedding=tuple(embedding), ordinal=base + i)
                for i, (segment, embedding) in enumerate(zip(segments, embeddings))
            ]
            self._entries = self._entries + tuple(added)
        return added

    def search(
        self, query_embedding: Sequence[float], k: int, min_score: float
    ) -> list[Match]:
        if k < 1:
            return []
        entries = self._entries
        eligible = [
            Match(entry=entry, score=score)
            for entry in entries
            if (score := cosine_similarity(query_embedding, entry.embedding)) >= min_score
        ]
        # Stable sort keeps insertion order among equal scores.
        eligible.sort(key=lambda match: match.score, reverse=True)
        return eligible[:k]

    def entries(self) -> list[IndexEntry]:
        return list(self._entries)


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    if not a or not b or len(a) != len(b):
        return 0.0
    numerator = sum(x * y for x, y in zip(a, b))
    norm_a = sqrt(sum(x * x for x in a))
    norm_b = sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return numerator / (norm_a * norm_b)
