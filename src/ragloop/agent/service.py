"""Session-aware entry point for agent tasks."""

from __future__ import annotations

from dataclasses import dataclass, field

from ragloop.agent.orchestrator import ReActOrchestrator
from ragloop.config import AgentConfig
from ragloop.errors import InputValidationError
from ragloop.memory.sessions import SessionStore
from ragloop.obs.logging import get_logger
from ragloop.obs.timing import Timer
from ragloop.types import RunStatus, ToolExecution

logger = get_logger(__name__)


@dataclass(slots=True)
class AgentResult:
    answer: str
    session_id: str
    status: RunStatus
    tool_executions: list[ToolExecution] = field(default_factory=list)
    iterations: int = 0
    forced: bool = False
    latency_ms: float = 0.0


class AgentService:
    """Validates requests, resolves sessions and runs the orchestrator.

    Requests on different sessions run concurrently; requests on the same
    session queue on its lock, one full run at a time.
    """

    def __init__(
        self,
        *,
        orchestrator: ReActOrchestrator,
        sessions: SessionStore,
        config: AgentConfig | None = None,
    ) -> None:
        self.orchestrator = orchestrator
        self.sessions = sessions
        self.config = config or orchestrator.config

    def create_session(self) -> str:
        return self.sessions.create().session_id

    def clear_session(self, session_id: str) -> bool:
        return self.sessions.clear(session_id)

    def available_tools(self) -> list[str]:
        return [
            f"{spec.name} - {spec.description}" for spec in self.orchestrator.tool_registry.specs()
        ]

    async def execute(self, message: str, *, session_id: str | None = None) -> AgentResult:
        self._validate(message)
        logger.info("Executing agent task: %s", message)

        session = self.sessions.get_or_create(session_id)
        async with session.lock:
            with Timer() as timer:
                result = await self.orchestrator.run(session.memory, message)

        if result.status == "completed":
            logger.info("Agent completed task. Tools used: %d", len(result.executions))
        return AgentResult(
            answer=result.answer,
            session_id=session.session_id,
            status=result.status,
            tool_executions=result.executions if result.status == "completed" else [],
            iterations=result.iterations,
            forced=result.forced,
            latency_ms=timer.elapsed_ms,
        )

    def _validate(self, message: str) -> None:
        if not message or not message.strip():
            raise InputValidationError("Message cannot be null or blank")
        if len(message) > self.config.max_message_length:
            raise InputValidationError(
                f"Message exceeds maximum length of {self.config.max_message_length} characters"
            )
