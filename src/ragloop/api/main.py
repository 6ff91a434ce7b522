"""FastAPI entrypoint for ingestion, RAG and agent endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI, HTTPException, Request, UploadFile
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ragloop.agent.orchestrator import ReActOrchestrator
from ragloop.agent.registry import ToolRegistry
from ragloop.agent.service import AgentService
from ragloop.agent.tools import register_builtin_tools
from ragloop.config import Settings, get_settings
from ragloop.errors import AdapterError, EmptyDocumentError, InputValidationError
from ragloop.ingest.chunker import RecursiveOverlapChunker
from ragloop.ingest.embedder import Embedder, HashingEmbedder, LangChainEmbedder
from ragloop.ingest.pipeline import IngestPipeline
from ragloop.llm.chat import ChatModel, LangChainChatModel
from ragloop.llm.fallback import DeterministicChatModel
from ragloop.memory.sessions import SessionStore
from ragloop.obs.logging import configure_logging, get_logger
from ragloop.retrieval.answerer import GroundedAnswerer
from ragloop.retrieval.retriever import Retriever
from ragloop.retrieval.vector_store import InMemoryVectorIndex
from ragloop.types import IngestResult, ToolExecution

logger = get_logger(__name__)


def _create_models(settings: Settings) -> tuple[ChatModel, Embedder]:
    if settings.openai_api_key is None:
        return DeterministicChatModel(), HashingEmbedder()

    from langchain_openai import ChatOpenAI, OpenAIEmbeddings

    api_key = settings.openai_api_key.get_secret_value()
    llm = ChatOpenAI(model=settings.chat_model, temperature=0, api_key=api_key)
    embeddings = OpenAIEmbeddings(model=settings.embedding_model, api_key=api_key)
    return LangChainChatModel(llm), LangChainEmbedder(embeddings)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class IngestRequest(_CamelModel):
    content: str
    filename: str = Field(min_length=1)


class RagRequest(_CamelModel):
    question: str
    conversation_id: str | None = None
    max_results: int | None = Field(default=None, ge=1)


class AgentRequest(_CamelModel):
    message: str
    session_id: str | None = None


_settings = get_settings()
configure_logging(_settings.log_level)

_chat_model, _embedder = _create_models(_settings)
_vector_index = InMemoryVectorIndex()
_ingest_pipeline = IngestPipeline(
    RecursiveOverlapChunker(_settings.chunking()),
    _embedder,
    _vector_index,
    embed_timeout_seconds=_settings.retrieval().embed_timeout_seconds,
)

_retriever = Retriever(_vector_index, _embedder, _settings.retrieval())
_answerer = GroundedAnswerer(
    retriever=_retriever,
    chat_model=_chat_model,
    sessions=SessionStore(_settings.memory()),
)

_registry = ToolRegistry()
register_builtin_tools(_registry)
_registry.set_observer(
    lambda execution: logger.debug(
        "Tool %s finished in %.1f ms", execution.tool_name, execution.latency_ms
    )
)
_agent = AgentService(
    orchestrator=ReActOrchestrator(
        chat_model=_chat_model,
        tool_registry=_registry,
        config=_settings.agent(),
    ),
    sessions=SessionStore(_settings.memory()),
)

app = FastAPI(title="RAG Loop", version="0.1.0")


@app.exception_handler(InputValidationError)
async def _validation_error(request: Request, exc: InputValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": "validation_error", "message": str(exc)})


@app.exception_handler(EmptyDocumentError)
async def _empty_document(request: Request, exc: EmptyDocumentError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": "empty_document", "message": str(exc)})


@app.exception_handler(AdapterError)
async def _adapter_error(request: Request, exc: AdapterError) -> JSONResponse:
    logger.error("Model call failed: %s", exc)
    return JSONResponse(status_code=502, content={"error": "adapter_error", "message": str(exc)})


@app.get("/health")
def health() -> dict[str, Any]:
    return {
        "status": "ok",
        "llm_configured": _settings.openai_api_key is not None,
        "indexed_segments": len(_vector_index),
    }


@app.post("/documents")
async def ingest(request: IngestRequest) -> dict[str, Any]:
    result = await _ingest_pipeline.ingest_text(request.content, request.filename)
    return _ingest_payload(result)


@app.post("/documents/upload")
async def upload(file: UploadFile) -> dict[str, Any]:
    result = await _ingest_pipeline.ingest_bytes(await file.read(), file.filename or "")
    return _ingest_payload(result)


@app.post("/rag/ask")
async def ask(request: RagRequest) -> dict[str, Any]:
    result = await _answerer.ask(
        request.question,
        conversation_id=request.conversation_id,
        max_results=request.max_results,
    )
    return {
        "answer": result.answer,
        "conversationId": result.conversation_id,
        "sources": [
            {
                "filename": source.filename,
                "excerpt": source.excerpt,
                "relevanceScore": source.relevance_score,
            }
            for source in result.sources
        ],
    }


@app.post("/agent/sessions")
def create_session() -> dict[str, str]:
    return {"sessionId": _agent.create_session()}


@app.delete("/agent/sessions/{session_id}")
def clear_session(session_id: str) -> dict[str, Any]:
    if not _agent.clear_session(session_id):
        raise HTTPException(status_code=404, detail=f"Session not found: {session_id}")
    return {"sessionId": session_id, "cleared": True}


@app.post("/agent/execute")
async def execute(request: AgentRequest) -> dict[str, Any]:
    result = await _agent.execute(request.message, session_id=request.session_id)
    return {
        "answer": result.answer,
        "sessionId": result.session_id,
        "toolExecutions": [_execution_payload(item) for item in result.tool_executions],
        "status": result.status,
    }


@app.get("/agent/tools")
def tools() -> dict[str, Any]:
    return {"tools": _agent.available_tools()}


def _ingest_payload(result: IngestResult) -> dict[str, Any]:
    return {
        "documentId": result.document_id,
        "filename": result.filename,
        "segmentCount": result.segment_count,
    }


def _execution_payload(execution: ToolExecution) -> dict[str, Any]:
    return {
        "toolName": execution.tool_name,
        "parameters": execution.parameters,
        "resultOrError": execution.result_or_error,
    }
