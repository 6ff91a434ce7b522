from ragloop.agent.orchestrator import OBSERVATION_FOOTER, OBSERVATION_HEADER, ReActOrchestrator
from ragloop.agent.registry import ToolRegistry
from ragloop.agent.tools import register_builtin_tools
from ragloop.llm.fallback import DeterministicChatModel
from ragloop.retrieval.answerer import NOT_FOUND_ANSWER, RAG_PROMPT


def _orchestrator() -> ReActOrchestrator:
    registry = ToolRegistry()
    register_builtin_tools(registry)
    return ReActOrchestrator(chat_model=DeterministicChatModel(), tool_registry=registry)


def test_system_prompt_teaches_directive_grammar() -> None:
    prompt = _orchestrator().system_prompt()

    assert "TOOL_CALL: <tool_name>(<param1>=<value1>, <param2>=<value2>)" in prompt
    assert "1. getCurrentWeather(location: string) - " in prompt
    assert "add(a: number, b: number)" in prompt
    assert "{tools}" not in prompt


def test_observation_wording_is_stable() -> None:
    assert OBSERVATION_HEADER == "Tool results:"
    assert OBSERVATION_FOOTER.endswith("Otherwise, provide your final answer.")


def test_rag_prompt_constrains_answers_to_context() -> None:
    prompt = RAG_PROMPT.format(history="", context="Passage one.", question="What?")

    assert prompt.startswith("Answer the question based on the following context.")
    assert "If the answer cannot be found in the context, say so." in prompt
    assert "Context:\nPassage one.\n\nQuestion: What?" in prompt
    assert prompt.endswith("Answer:")
    assert set(RAG_PROMPT.input_variables) == {"history", "context", "question"}


def test_not_found_answer_wording() -> None:
    assert NOT_FOUND_ANSWER.startswith("I cannot find that information in the provided documents.")
