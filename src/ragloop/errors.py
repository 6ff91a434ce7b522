"""Exception taxonomy shared by ingestion, retrieval and the agent loop."""

from __future__ import annotations


class RagLoopError(Exception):
    """Base class for all errors raised by this package."""


class InputValidationError(RagLoopError):
    """A required input is missing, blank or out of bounds."""


class EmptyDocumentError(RagLoopError):
    """Ingestion was asked to split blank or whitespace-only content."""


class AdapterError(RagLoopError):
    """A chat or embedding call failed."""


class ModelUnavailableError(AdapterError):
    """No model is reachable (not configured, connection refused, ...)."""


class ModelError(AdapterError):
    """The model provider returned an error."""


class ModelTimeoutError(AdapterError):
    """A model call did not finish before its deadline."""


class DomainError(ValueError):
    """A tool input is outside the mathematical or physical domain."""


class DirectiveSyntaxError(RagLoopError):
    """A tool-call directive could not be parsed."""


class ToolExecutionError(RagLoopError):
    """One tool invocation failed; carries the tool name and the cause."""

    def __init__(self, tool_name: str, cause: BaseException | str) -> None:
        self.tool_name = tool_name
        self.cause = cause
        super().__init__(str(cause))


class UnknownToolError(ToolExecutionError):
    def __init__(self, tool_name: str) -> None:
        super().__init__(tool_name, f"Unknown tool: {tool_name}")


class ToolArgumentError(ToolExecutionError):
    """Parameters could not be parsed or did not match the tool schema."""
