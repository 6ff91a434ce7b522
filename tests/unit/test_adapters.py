import httpx
import openai
import pytest
from langchain_core.embeddings import DeterministicFakeEmbedding
from langchain_core.language_models import FakeListChatModel

from ragloop.errors import ModelError, ModelUnavailableError
from ragloop.ingest.embedder import LangChainEmbedder
from ragloop.llm.chat import LangChainChatModel

_REQUEST = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")


class RaisingLLM:
    def __init__(self, exc: Exception) -> None:
        self.exc = exc

    async def ainvoke(self, messages):
        raise self.exc


class RaisingEmbeddings:
    def __init__(self, exc: Exception) -> None:
        self.exc = exc

    async def aembed_query(self, text: str) -> list[float]:
        raise self.exc

    async def aembed_documents(self, texts: list[str]) -> list[list[float]]:
        raise self.exc


@pytest.mark.asyncio
async def test_chat_adapter_returns_model_text() -> None:
    model = LangChainChatModel(FakeListChatModel(responses=["The answer is 17."]))

    assert await model.complete("User: Calculate 5 plus 12") == "The answer is 17."


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "exc",
    [
        openai.APIConnectionError(request=_REQUEST),
        openai.APITimeoutError(request=_REQUEST),
        ConnectionRefusedError("refused"),
    ],
)
async def test_chat_adapter_maps_unreachable_provider(exc: Exception) -> None:
    model = LangChainChatModel(RaisingLLM(exc))

    with pytest.raises(ModelUnavailableError):
        await model.complete("hello")


@pytest.mark.asyncio
async def test_chat_adapter_maps_other_failures_to_model_error() -> None:
    model = LangChainChatModel(RaisingLLM(ValueError("content filtered")))

    with pytest.raises(ModelError, match="content filtered"):
        await model.complete("hello")


@pytest.mark.asyncio
async def test_embedding_adapter_returns_vectors() -> None:
    embedder = LangChainEmbedder(DeterministicFakeEmbedding(size=8))

    query = await embedder.embed("encrypt customer data")
    batch = await embedder.embed_batch(["encrypt customer data", "visitors sign in"])

    assert len(query) == 8
    assert len(batch) == 2
    assert batch[0] == query


@pytest.mark.asyncio
async def test_embedding_adapter_maps_errors() -> None:
    unreachable = LangChainEmbedder(RaisingEmbeddings(openai.APIConnectionError(request=_REQUEST)))
    failing = LangChainEmbedder(RaisingEmbeddings(RuntimeError("quota exceeded")))

    with pytest.raises(ModelUnavailableError):
        await unreachable.embed("query")
    with pytest.raises(ModelUnavailableError):
        await unreachable.embed_batch(["a"])
    with pytest.raises(ModelError, match="quota exceeded"):
        await failing.embed_batch(["a"])
