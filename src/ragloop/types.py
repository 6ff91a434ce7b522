"""Shared domain models."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Literal


@dataclass(frozen=True, slots=True)
class Document:
    """Raw text awaiting chunking."""

    text: str
    filename: str
    doc_id: str = field(default_factory=lambda: str(uuid.uuid4()))


@dataclass(frozen=True, slots=True)
class Segment:
    """A contiguous slice of a document.

    `start` is the character offset of the slice in the source text and
    `overlap` the number of leading characters shared with the previous
    segment of the same document (0 for the first one).
    """

    segment_id: str
    doc_id: str
    filename: str
    position: int
    text: str
    start: int
    overlap: int = 0

    @property
    def length(self) -> int:
        return len(self.text)

    @property
    def end(self) -> int:
        return self.start + len(self.text)


@dataclass(frozen=True, slots=True)
class IndexEntry:
    """A segment paired with its embedding inside the vector index."""

    segment: Segment
    embedding: tuple[float, ...]
    ordinal: int


@dataclass(frozen=True, slots=True)
class Match:
    """A similarity search hit."""

    entry: IndexEntry
    score: float

    @property
    def segment(self) -> Segment:
        return self.entry.segment


@dataclass(frozen=True, slots=True)
class SourceReference:
    """Provenance for one passage used to ground an answer."""

    filename: str
    excerpt: str
    relevance_score: float


@dataclass(frozen=True, slots=True)
class IngestResult:
    document_id: str
    filename: str
    segment_count: int


@dataclass(frozen=True, slots=True)
class ToolCall:
    """A tool invocation parsed from model output."""

    name: str
    raw_arguments: str
    parameters: dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class ToolExecution:
    """Record of one dispatched tool call."""

    tool_name: str
    parameters: dict[str, str]
    result: str | None = None
    error: str | None = None
    iteration: int = 0
    latency_ms: float = 0.0

    @property
    def result_or_error(self) -> str:
        if self.error is not None:
            return f"Error: {self.error}"
        return self.result or ""


RunStatus = Literal["completed", "failed"]
