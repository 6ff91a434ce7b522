"""Chat model boundary: one context string in, assistant text out."""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Any

import openai
from langchain_core.messages import HumanMessage

from ragloop.errors import AdapterError, ModelError, ModelTimeoutError, ModelUnavailableError

# Provider errors that mean no model is reachable.
CONNECTION_ERRORS: tuple[type[BaseException], ...] = (
    openai.APIConnectionError,
    openai.APITimeoutError,
    ConnectionError,
    OSError,
)


class ChatModel(ABC):
    """Text-completion interface used by the answerer and the orchestrator."""

    @abstractmethod
    async def complete(self, context: str) -> str:
        """Return the assistant reply for the full serialized context."""


class LangChainChatModel(ChatModel):
    """Adapts a LangChain chat model (e.g. `ChatOpenAI`)."""

    def __init__(self, llm: Any) -> None:
        self.llm = llm

    async def complete(self, context: str) -> str:
        try:
            response = await self.llm.ainvoke([HumanMessage(content=context)])
        except CONNECTION_ERRORS as exc:
            raise ModelUnavailableError(f"Chat model unreachable: {exc}") from exc
        except Exception as exc:
            raise ModelError(f"Chat model request failed: {exc}") from exc
        return _content_text(getattr(response, "content", response))


async def complete_with_deadline(model: ChatModel, context: str, timeout: float) -> str:
    """Call the model, mapping deadline expiry and stray errors to `AdapterError`."""

    try:
        return await asyncio.wait_for(model.complete(context), timeout=timeout)
    except asyncio.TimeoutError as exc:
        raise ModelTimeoutError(f"Chat model did not answer within {timeout:.1f}s") from exc
    except AdapterError:
        raise
    except Exception as exc:
        raise ModelError(str(exc)) from exc


def _content_text(content: Any) -> str:
    if isinstance(content, list):
        parts: list[str] = []
        for item in content:
            if isinstance(item, dict) and "text" in item:
                parts.append(str(item["text"]))
            else:
                parts.append(str(item))
        return " ".join(parts).strip()
    return str(content)
