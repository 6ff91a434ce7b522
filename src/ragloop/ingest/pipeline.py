"""End-to-end ingest pipeline: parse -> chunk -> embed -> index."""

from __future__ import annotations

import asyncio
from pathlib import Path

from ragloop.errors import EmptyDocumentError, InputValidationError, ModelTimeoutError
from ragloop.ingest.chunker import RecursiveOverlapChunker
from ragloop.ingest.embedder import Embedder
from ragloop.ingest.parser import ParserRegistry
from ragloop.obs.logging import get_logger
from ragloop.retrieval.vector_store import VectorIndex
from ragloop.types import Document, IngestResult

logger = get_logger(__name__)


class IngestPipeline:
    """Coordinates parser/chunker/embedder/vector index stages.

    Nothing is written to the index until every segment of the document has
    been embedded, so a failed ingestion leaves no partial state behind.
    """

    def __init__(
        self,
        chunker: RecursiveOverlapChunker,
        embedder: Embedder,
        vector_index: VectorIndex,
        *,
        parser_registry: ParserRegistry | None = None,
        embed_timeout_seconds: float = 30.0,
    ) -> None:
        self._chunker = chunker
        self._embedder = embedder
        self._vector_index = vector_index
        self._parser_registry = parser_registry or ParserRegistry()
        self._embed_timeout_seconds = embed_timeout_seconds

    async def ingest_text(self, content: str, filename: str) -> IngestResult:
        """Ingest raw text content under the given filename."""

        if not filename or not filename.strip():
            raise InputValidationError("filename must not be blank")
        if not content or not content.strip():
            raise EmptyDocumentError(f"Document '{filename}' has no content")
        return await self._ingest(Document(text=content, filename=filename))

    async def ingest_bytes(self, raw: bytes, filename: str) -> IngestResult:
        """Parse uploaded file content by its extension, then ingest it."""

        if not filename or not filename.strip():
            raise InputValidationError("filename must not be blank")
        return await self._ingest(self._parser_registry.parse_bytes(raw, filename=filename))

    async def ingest_path(self, path: str | Path) -> IngestResult:
        """Parse and ingest a single source file."""

        return await self._ingest(self._parser_registry.parse_path(path))

    async def _ingest(self, document: Document) -> IngestResult:
        segments = self._chunker.split(document)
        try:
            embeddings = await asyncio.wait_for(
                self._embedder.embed_batch([segment.text for segment in segments]),
                timeout=self._embed_timeout_seconds,
            )
        except asyncio.TimeoutError as exc:
            raise ModelTimeoutError("Embedding request timed out") from exc

        self._vector_index.add_many(segments, embeddings)
        logger.info(
            "Document '%s' processed into %d segments", document.filename, len(segments)
        )
        return IngestResult(
            document_id=document.doc_id,
            filename=document.filename,
            segment_count=len(segments),
        )
