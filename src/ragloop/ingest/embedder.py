"""Embedding abstractions, a deterministic baseline and a LangChain adapter."""

from __future__ import annotations

from abc import ABC, abstractmethod
from hashlib import blake2b
from math import sqrt
from typing import TYPE_CHECKING

from ragloop.errors import ModelError, ModelUnavailableError
from ragloop.llm.chat import CONNECTION_ERRORS

if TYPE_CHECKING:
    from langchain_core.embeddings import Embeddings


class Embedder(ABC):
    """Embedder interface used by ingestion and retrieval components."""

    @abstractmethod
    async def embed(self, text: str) -> list[float]:
        """Embed one text (usually a query)."""

    @abstractmethod
    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Embed many texts, preserving order."""


class HashingEmbedder(Embedder):
    """Deterministic sparse-like embedding without external model calls.

    Used for local runs and tests. Identical texts always map to identical
    unit vectors, so an exact-text query scores 1.0 against its segment.
    """

    def __init__(self, dimension: int = 256) -> None:
        self.dimension = dimension

    async def embed(self, text: str) -> list[float]:
        return self._embed(text)

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        return [self._embed(text) for text in texts]

    def _embed(self, text: str) -> list[float]:
        vector = [0.0 for _ in range(self.dimension)]
        tokens = text.lower().split()
        if not tokens:
            return vector

        for token in tokens:
            digest = blake2b(token.encode("utf-8"), digest_size=8).digest()
            idx = int.from_bytes(digest[:4], "little") % self.dimension
            sign = -1.0 if digest[4] % 2 else 1.0
            vector[idx] += sign

        norm = sqrt(sum(value * value for value in vector))
        if norm == 0:
            return vector
        return [value / norm for value in vector]


class LangChainEmbedder(Embedder):
    """Adapts any LangChain `Embeddings` (e.g. `OpenAIEmbeddings`)."""

    def __init__(self, embeddings: "Embeddings") -> None:
        self._embeddings = embeddings

    async def embed(self, text: str) -> list[float]:
        try:
            return list(await self._embeddings.aembed_query(text))
        except CONNECTION_ERRORS as exc:
            raise ModelUnavailableError(f"Embedding model unreachable: {exc}") from exc
        except Exception as exc:
            raise ModelError(f"Embedding request failed: {exc}") from exc

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        try:
            vectors = await self._embeddings.aembed_documents(texts)
        except CONNECTION_ERRORS as exc:
            raise ModelUnavailableError(f"Embedding model unreachable: {exc}") from exc
        except Exception as exc:
            raise ModelError(f"Embedding request failed: {exc}") from exc
        return [list(vector) for vector in vectors]
