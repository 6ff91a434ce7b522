"""Tool registry built on Pydantic v2 models."""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable, Iterator
from contextlib import contextmanager
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ragloop.errors import ToolArgumentError, ToolExecutionError, UnknownToolError
from ragloop.obs.logging import get_logger
from ragloop.obs.timing import Timer
from ragloop.types import ToolExecution

logger = get_logger(__name__)

_TYPE_NAMES = {"number": "number", "integer": "int", "string": "string", "boolean": "bool"}


class ToolSpec(BaseModel):
    """Declarative tool specification for registration and validation."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str
    description: str
    args_schema: type[BaseModel]
    handler: Callable[[BaseModel], str | Awaitable[str]]
    tags: list[str] = Field(default_factory=list)

    def parameters(self) -> list[tuple[str, str]]:
        """Declared parameter names with their display types, in order."""

        properties = self.args_schema.model_json_schema().get("properties", {})
        return [
            (name, _TYPE_NAMES.get(str(prop.get("type")), str(prop.get("type", "any"))))
            for name, prop in properties.items()
        ]

    def signature(self) -> str:
        params = ", ".join(f"{name}: {type_name}" for name, type_name in self.parameters())
        return f"{self.name}({params})"

    def invoke(self, payload: dict[str, Any]) -> str:
        output = self.handler(self._validate(payload))
        if inspect.isawaitable(output):
            if inspect.iscoroutine(output):
                output.close()
            raise TypeError(f"Tool {self.name} is asynchronous; use ToolRegistry.aexecute")
        return output

    async def ainvoke(self, payload: dict[str, Any]) -> str:
        output = self.handler(self._validate(payload))
        if inspect.isawaitable(output):
            output = await output
        return output

    def _validate(self, payload: dict[str, Any]) -> BaseModel:
        try:
            return self.args_schema.model_validate(payload)
        except ValidationError as exc:
            raise ToolArgumentError(self.name, _describe_validation(exc)) from exc


class ToolRegistry:
    """Closed name -> tool mapping with validation before dispatch."""

    def __init__(self) -> None:
        self._tools: dict[str, ToolSpec] = {}
        self._observer: Callable[[ToolExecution], None] | None = None

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def register(self, spec: ToolSpec) -> None:
        if spec.name in self._tools:
            raise ValueError(f"Tool already registered: {spec.name}")
        self._tools[spec.name] = spec

    def set_observer(self, observer: Callable[[ToolExecution], None] | None) -> None:
        """Set an optional callback invoked after each tool execution."""
        self._observer = observer

    def get(self, name: str) -> ToolSpec:
        spec = self._tools.get(name)
        if spec is None:
            raise UnknownToolError(name)
        return spec

    def execute(self, name: str, payload: dict[str, Any]) -> str:
        """Run one tool; every failure surfaces as `ToolExecutionError`."""

        spec = self.get(name)
        with self._recording(spec, payload) as execution:
            execution.result = spec.invoke(payload)
        return execution.result

    async def aexecute(self, name: str, payload: dict[str, Any]) -> str:
        """Async variant of `execute`; also accepts coroutine handlers."""

        spec = self.get(name)
        with self._recording(spec, payload) as execution:
            execution.result = await spec.ainvoke(payload)
        return execution.result

    def specs(self) -> list[ToolSpec]:
        return list(self._tools.values())

    def names(self) -> list[str]:
        return list(self._tools)

    def describe(self) -> str:
        """Numbered tool catalog for prompts."""

        return "\n".join(
            f"{i}. {spec.signature()} - {spec.description}"
            for i, spec in enumerate(self._tools.values(), start=1)
        )

    @contextmanager
    def _recording(self, spec: ToolSpec, payload: dict[str, Any]) -> Iterator[ToolExecution]:
        execution = ToolExecution(
            tool_name=spec.name,
            parameters={key: str(value) for key, value in payload.items()},
        )
        timer = Timer()
        try:
            with timer:
                yield execution
        except ToolExecutionError as exc:
            execution.error = str(exc)
            raise
        except Exception as exc:
            logger.error("Tool %s failed: %s", spec.name, exc)
            execution.error = str(exc)
            raise ToolExecutionError(spec.name, exc) from exc
        finally:
            execution.latency_ms = timer.elapsed_ms
            self._notify(execution)

    def _notify(self, execution: ToolExecution) -> None:
        if self._observer is not None:
            self._observer(execution)


def _describe_validation(exc: ValidationError) -> str:
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ())) or "input"
        problems.append(f"{location}: {error.get('msg', 'invalid value')}")
    return "Invalid parameters: " + "; ".join(problems)
