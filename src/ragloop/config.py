"""Configuration models for the RAG + agent system."""

from __future__ import annotations

from functools import lru_cache

from pydantic import BaseModel, Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ChunkingConfig(BaseModel):
    """Configures recursive character chunking with a sliding overlap."""

    chunk_size: int = Field(default=300, ge=1)
    chunk_overlap: int = Field(default=30, ge=0)

    @model_validator(mode="after")
    def _overlap_below_size(self) -> "ChunkingConfig":
        if self.chunk_overlap >= self.chunk_size:
            raise ValueError("chunk_overlap must be less than chunk_size")
        return self


class RetrievalConfig(BaseModel):
    """Configures similarity search limits for grounded answering."""

    max_results: int = Field(default=5, ge=1)
    min_score: float = Field(default=0.7, ge=-1.0, le=1.0)
    embed_timeout_seconds: float = Field(default=30.0, gt=0.0)
    model_timeout_seconds: float = Field(default=60.0, gt=0.0)


class MemoryConfig(BaseModel):
    """Configures the bounded per-session message window."""

    max_messages: int = Field(default=20, ge=2)


class AgentConfig(BaseModel):
    """Configures the tool-calling loop and request limits."""

    max_iterations: int = Field(default=5, ge=1)
    max_message_length: int = Field(default=1000, ge=1)
    model_timeout_seconds: float = Field(default=60.0, gt=0.0)


class Settings(BaseSettings):
    """Process-level settings read from the environment or `.env`.

    Everything except the OpenAI key uses the `RAGLOOP_` prefix, e.g.
    `RAGLOOP_CHUNK_SIZE=500`. Without an API key the service runs offline on
    the deterministic embedder and chat model.
    """

    model_config = SettingsConfigDict(
        env_prefix="RAGLOOP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    openai_api_key: SecretStr | None = Field(default=None, validation_alias="OPENAI_API_KEY")
    chat_model: str = "gpt-4o-mini"
    embedding_model: str = "text-embedding-3-small"
    log_level: str = "INFO"

    chunk_size: int = Field(default=300, ge=1)
    chunk_overlap: int = Field(default=30, ge=0)
    min_score: float = Field(default=0.7, ge=-1.0, le=1.0)
    max_messages: int = Field(default=20, ge=2)
    max_iterations: int = Field(default=5, ge=1)

    def chunking(self) -> ChunkingConfig:
        return ChunkingConfig(chunk_size=self.chunk_size, chunk_overlap=self.chunk_overlap)

    def retrieval(self) -> RetrievalConfig:
        return RetrievalConfig(min_score=self.min_score)

    def memory(self) -> MemoryConfig:
        return MemoryConfig(max_messages=self.max_messages)

    def agent(self) -> AgentConfig:
        return AgentConfig(max_iterations=self.max_iterations)


@lru_cache
def get_settings() -> Settings:
    return Settings()
