"""ReAct loop driven by `TOOL_CALL:` directives in plain model text."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from ragloop.agent.directives import Directive, find_directives, parse_parameters, parse_tool_call
from ragloop.agent.registry import ToolRegistry
from ragloop.config import AgentConfig
from ragloop.errors import AdapterError, DirectiveSyntaxError, ToolExecutionError, UnknownToolError
from ragloop.llm.chat import ChatModel, complete_with_deadline
from ragloop.memory.conversation import ConversationMemory
from ragloop.obs.logging import get_logger
from ragloop.obs.timing import Timer
from ragloop.types import RunStatus, ToolExecution

logger = get_logger(__name__)

_SYSTEM_PROMPT = """
You are a helpful AI assistant with access to the following tools:

{tools}

When you need to use a tool, respond with:
TOOL_CALL: <tool_name>(<param1>=<value1>, <param2>=<value2>)

You may emit several TOOL_CALL lines in one reply; they run in order.
After getting the tool results, provide your final answer to the user.
If you don't need a tool, just answer directly.
""".strip()

OBSERVATION_HEADER = "Tool results:"
OBSERVATION_FOOTER = (
    "Use these results to continue. If you need more tools, call them. "
    "Otherwise, provide your final answer."
)


class RunState(str, Enum):
    AWAITING_MODEL = "awaiting_model"
    INSPECTING_OUTPUT = "inspecting_output"
    DISPATCHING = "dispatching"
    DONE = "done"
    FAILED = "failed"


@dataclass(slots=True)
class OrchestrationResult:
    """Outcome of one run.

    `iterations` counts dispatched tool batches. `forced` is set when the
    iteration cap ended the run while the last reply still held directives;
    that reply is returned unchanged as the answer.
    """

    answer: str
    status: RunStatus
    executions: list[ToolExecution] = field(default_factory=list)
    iterations: int = 0
    forced: bool = False
    error: str | None = None


class ReActOrchestrator:
    """Model -> directives -> tools -> observation -> model, until done.

    The caller must hold the session lock for the whole `run` call: the loop
    appends to `memory` across several model round trips.
    """

    def __init__(
        self,
        *,
        chat_model: ChatModel,
        tool_registry: ToolRegistry,
        config: AgentConfig | None = None,
    ) -> None:
        self.chat_model = chat_model
        self.tool_registry = tool_registry
        self.config = config or AgentConfig()

    def system_prompt(self) -> str:
        return _SYSTEM_PROMPT.format(tools=self.tool_registry.describe())

    async def run(self, memory: ConversationMemory, user_message: str) -> OrchestrationResult:
        snapshot = memory.snapshot()
        if memory.system_message() is None:
            memory.append(SystemMessage(content=self.system_prompt()))
        memory.append(HumanMessage(content=user_message))

        executions: list[ToolExecution] = []
        iterations = 0
        output = ""
        directives: list[Directive] = []
        state = RunState.AWAITING_MODEL

        while True:
            if state is RunState.AWAITING_MODEL:
                try:
                    output = await complete_with_deadline(
                        self.chat_model, memory.render(), self.config.model_timeout_seconds
                    )
                except AdapterError as exc:
                    logger.error("Chat model call failed: %s", exc, exc_info=True)
                    memory.restore(snapshot)
                    return OrchestrationResult(
                        answer=f"I encountered an error: {exc}",
                        status="failed",
                        iterations=iterations,
                        error=str(exc),
                    )
                state = RunState.INSPECTING_OUTPUT

            elif state is RunState.INSPECTING_OUTPUT:
                memory.append(AIMessage(content=output))
                directives = find_directives(output)
                state = RunState.DISPATCHING if directives else RunState.DONE

            elif state is RunState.DISPATCHING:
                iterations += 1
                logger.info("Tool execution iteration: %d", iterations)
                batch = [await self._dispatch(d, iterations) for d in directives]
                executions.extend(batch)
                memory.append(HumanMessage(content=_observation(batch)))

                if iterations >= self.config.max_iterations:
                    logger.warning(
                        "Max iterations (%d) reached; returning last reply unresolved",
                        self.config.max_iterations,
                    )
                    return OrchestrationResult(
                        answer=output,
                        status="completed",
                        executions=executions,
                        iterations=iterations,
                        forced=True,
                    )
                state = RunState.AWAITING_MODEL

            else:
                return OrchestrationResult(
                    answer=output,
                    status="completed",
                    executions=executions,
                    iterations=iterations,
                )

    async def _dispatch(self, directive: Directive, iteration: int) -> ToolExecution:
        execution = ToolExecution(
            tool_name=directive.name,
            parameters=_requested_parameters(directive),
            iteration=iteration,
        )
        with Timer() as timer:
            try:
                # Name first, so unknown tools are reported apart from bad arguments.
                if directive.name not in self.tool_registry:
                    raise UnknownToolError(directive.name)
                call = parse_tool_call(directive)
                execution.result = await self.tool_registry.aexecute(
                    call.name, dict(call.parameters)
                )
            except (DirectiveSyntaxError, ToolExecutionError) as exc:
                logger.info("Tool %s reported an error: %s", directive.name, exc)
                execution.error = str(exc)
        execution.latency_ms = timer.elapsed_ms
        return execution


def _requested_parameters(directive: Directive) -> dict[str, str]:
    """What the model asked for, kept even when the call cannot be dispatched."""

    if directive.error is None:
        try:
            return parse_parameters(directive.raw_arguments)
        except DirectiveSyntaxError:
            pass
    if not directive.raw_arguments.strip():
        return {}
    return {"arguments": directive.raw_arguments}


def _observation(batch: list[ToolExecution]) -> str:
    lines = []
    for execution in batch:
        if execution.error is not None:
            lines.append(f"Tool {execution.tool_name} error: {execution.error}")
        else:
            lines.append(f"Tool {execution.tool_name} result: {execution.result}")
    return f"{OBSERVATION_HEADER}\n" + "\n".join(lines) + f"\n\n{OBSERVATION_FOOTER}"
