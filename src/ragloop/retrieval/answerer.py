"""Retrieval-augmented answering over the indexed corpus."""

from __future__ import annotations

from dataclasses import dataclass, field

from langchain_core.messages import AIMessage, HumanMessage
from langchain_core.prompts import PromptTemplate

from ragloop.config import RetrievalConfig
from ragloop.errors import InputValidationError
from ragloop.llm.chat import ChatModel, complete_with_deadline
from ragloop.memory.sessions import SessionStore
from ragloop.obs.logging import get_logger
from ragloop.retrieval.retriever import Retriever
from ragloop.types import SourceReference

logger = get_logger(__name__)

NOT_FOUND_ANSWER = (
    "I cannot find that information in the provided documents. "
    "Please try asking something related to the uploaded content."
)

RAG_PROMPT = PromptTemplate.from_template(
    """Answer the question based on the following context.
If the answer cannot be found in the context, say so.
{history}
Context:
{context}

Question: {question}

Answer:"""
)


@dataclass(slots=True)
class RagAnswer:
    answer: str
    conversation_id: str
    sources: list[SourceReference] = field(default_factory=list)


class GroundedAnswerer:
    """Answers questions from retrieved passages only.

    When nothing clears the score threshold the fixed `NOT_FOUND_ANSWER` is
    returned with no sources and the chat model is never called.
    """

    def __init__(
        self,
        *,
        retriever: Retriever,
        chat_model: ChatModel,
        sessions: SessionStore,
        config: RetrievalConfig | None = None,
    ) -> None:
        self.retriever = retriever
        self.chat_model = chat_model
        self.sessions = sessions
        self.config = config or retriever.config

    async def ask(
        self,
        question: str,
        *,
        conversation_id: str | None = None,
        max_results: int | None = None,
    ) -> RagAnswer:
        if not question or not question.strip():
            raise InputValidationError("Question cannot be null or blank")
        if max_results is not None and max_results < 1:
            raise InputValidationError("maxResults must be at least 1")

        logger.info("Processing RAG request: '%s'", question)
        session = self.sessions.get_or_create(conversation_id)

        async with session.lock:
            retrieved = await self.retriever.retrieve(
                question, k=max_results or self.config.max_results
            )
            if not retrieved.found:
                answer = NOT_FOUND_ANSWER
            else:
                prompt = RAG_PROMPT.format(
                    history=_history_block(session.memory.render()),
                    context=retrieved.context_text,
                    question=question,
                )
                answer = await complete_with_deadline(
                    self.chat_model, prompt, self.config.model_timeout_seconds
                )

            session.memory.append(HumanMessage(content=question))
            session.memory.append(AIMessage(content=answer))

        logger.info("RAG response generated with %d sources", len(retrieved.sources))
        return RagAnswer(
            answer=answer,
            conversation_id=session.session_id,
            sources=retrieved.sources,
        )


def _history_block(history: str) -> str:
    if not history:
        return ""
    return f"\nConversation so far:\n{history}\n"
