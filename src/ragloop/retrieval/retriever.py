"""Query-time retrieval producing a grounded context block with provenance."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

from ragloop.config import RetrievalConfig
from ragloop.errors import ModelTimeoutError
from ragloop.ingest.embedder import Embedder
from ragloop.obs.logging import get_logger
from ragloop.retrieval.vector_store import VectorIndex
from ragloop.types import Match, SourceReference

logger = get_logger(__name__)

NOT_FOUND_CONTEXT = "NOT_FOUND_IN_CORPUS"


@dataclass(slots=True)
class RetrievedContext:
    """Context text plus sources, positionally aligned with the passages."""

    context_text: str
    sources: list[SourceReference] = field(default_factory=list)
    matches: list[Match] = field(default_factory=list)

    @property
    def found(self) -> bool:
        return bool(self.matches)


class Retriever:
    """Embeds the query, searches the index and assembles the context."""

    def __init__(
        self,
        vector_index: VectorIndex,
        embedder: Embedder,
        config: RetrievalConfig | None = None,
    ) -> None:
        self.vector_index = vector_index
        self.embedder = embedder
        self.config = config or RetrievalConfig()

    async def retrieve(
        self,
        query: str,
        *,
        k: int | None = None,
        min_score: float | None = None,
    ) -> RetrievedContext:
        limit = k or self.config.max_results
        threshold = self.config.min_score if min_score is None else min_score

        try:
            query_embedding = await asyncio.wait_for(
                self.embedder.embed(query), timeout=self.config.embed_timeout_seconds
            )
        except asyncio.TimeoutError as exc:
            raise ModelTimeoutError("Embedding request timed out") from exc

        matches = self.vector_index.search(query_embedding, limit, threshold)
        if not matches:
            logger.warning("No relevant segments found for query: '%s'", query)
            return RetrievedContext(context_text=NOT_FOUND_CONTEXT)

        return RetrievedContext(
            context_text="\n\n".join(match.segment.text for match in matches),
            sources=[
                SourceReference(
                    filename=match.segment.filename or "unknown",
                    excerpt=match.segment.text,
                    relevance_score=match.score,
                )
                for match in matches
            ],
            matches=matches,
        )
