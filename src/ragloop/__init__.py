"""Retrieval-augmented answering and a directive-driven tool loop."""

from .config import AgentConfig, ChunkingConfig, MemoryConfig, RetrievalConfig

__all__ = ["AgentConfig", "ChunkingConfig", "MemoryConfig", "RetrievalConfig"]
