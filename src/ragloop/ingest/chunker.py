"""Recursive separator-aware chunking with a sliding character overlap."""

from __future__ import annotations

import re

from ragloop.config import ChunkingConfig
from ragloop.errors import EmptyDocumentError
from ragloop.types import Document, Segment

# Ordered from coarsest to finest; raw character cuts follow the last one.
_SEPARATORS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\n[ \t]*\n\s*"),
    re.compile(r"(?<=[.!?。！？])\s+"),
    re.compile(r"\s+"),
)

_Span = tuple[int, int]


class RecursiveOverlapChunker:
    """Splits documents into bounded, overlapping character segments.

    Design notes:
    1. Recursive partitioning.
       The text is cut after paragraph breaks; any piece still longer than the
       core budget (`chunk_size - chunk_overlap`) is cut after sentence ends,
       then after whitespace, and finally at raw character offsets. Cuts are
       placed after the separator, so every piece is a contiguous span and the
       pieces tile the text without gaps.

    2. Greedy re-merge.
       Adjacent pieces are merged into "cores" while the core still fits the
       budget. The first core may use the full `chunk_size` because nothing
       precedes it.

    3. Sliding overlap.
       Each segment after the first starts `chunk_overlap` characters before
       its core, never reaching back past the start of the previous segment.
       Segment length is therefore bounded by `chunk_size`, and
       `segments[0].text + "".join(s.text[s.overlap:] for s in segments[1:])`
       reproduces the input exactly.

    The output depends only on the input text and the configuration, so
    re-running ingestion yields identical segments.
    """

    def __init__(self, config: ChunkingConfig | None = None) -> None:
        self.config = config or ChunkingConfig()

    @property
    def core_budget(self) -> int:
        return self.config.chunk_size - self.config.chunk_overlap

    def split(self, document: Document) -> list[Segment]:
        text = document.text
        if not text or not text.strip():
            raise EmptyDocumentError(f"Document '{document.filename}' has no content")

        pieces = self._partition(text, 0, len(text), level=0)
        cores = self._merge(pieces)

        segments: list[Segment] = []
        previous_start = 0
        for position, (core_start, core_end) in enumerate(cores):
            if position == 0:
                start = core_start
            else:
                start = max(previous_start, core_start - self.config.chunk_overlap)
            segments.append(
                Segment(
                    segment_id=f"{document.doc_id}-seg-{position:04d}",
                    doc_id=document.doc_id,
                    filename=document.filename,
                    position=position,
                    text=text[start:core_end],
                    start=start,
                    overlap=core_start - start,
                )
            )
            previous_start = start
        return segments

    def _partition(self, text: str, start: int, end: int, *, level: int) -> list[_Span]:
        budget = self.core_budget
        if end - start <= budget:
            return [(start, end)]

        if level >= len(_SEPARATORS):
            return [(i, min(i + budget, end)) for i in range(start, end, budget)]

        cuts = [
            match.end()
            for match in _SEPARATORS[level].finditer(text, start, end)
            if start < match.end() < end
        ]
        bounds = [start, *cuts, end]

        spans: list[_Span] = []
        for left, right in zip(bounds, bounds[1:]):
            if right - left <= budget:
                spans.append((left, right))
            else:
                spans.extend(self._partition(text, left, right, level=level + 1))
        return spans

    def _merge(self, pieces: list[_Span]) -> list[_Span]:
        cores: list[_Span] = []
        current_start, current_end = pieces[0]
        for piece_start, piece_end in pieces[1:]:
            limit = self.config.chunk_size if not cores else self.core_budget
            if piece_end - current_start <= limit:
                current_end = piece_end
                continue
            cores.append((current_start, current_end))
            current_start, current_end = piece_start, piece_end
        cores.append((current_start, current_end))
        return cores


def reconstruct(segments: list[Segment]) -> str:
    """Join ordered segments of one document, dropping the shared overlaps."""

    if not segments:
        return ""
    return segments[0].text + "".join(s.text[s.overlap :] for s in segments[1:])
