import asyncio

import pytest
from pydantic import BaseModel, Field

from ragloop.agent.registry import ToolRegistry, ToolSpec
from ragloop.errors import ToolArgumentError, ToolExecutionError, UnknownToolError


class EchoInput(BaseModel):
    value: int = Field(ge=1)


class TextInput(BaseModel):
    text: str


def _echo_spec() -> ToolSpec:
    def _handler(data: EchoInput) -> str:
        return str(data.value)

    return ToolSpec(
        name="echo",
        description="echo positive int",
        args_schema=EchoInput,
        handler=_handler,
    )


def test_tool_registry_validation() -> None:
    registry = ToolRegistry()
    registry.register(_echo_spec())

    assert registry.execute("echo", {"value": "3"}) == "3"

    with pytest.raises(ToolArgumentError) as excinfo:
        registry.execute("echo", {"value": 0})
    assert excinfo.value.tool_name == "echo"


def test_duplicate_tool_registration_rejected() -> None:
    registry = ToolRegistry()
    spec = _echo_spec()

    registry.register(spec)
    with pytest.raises(ValueError):
        registry.register(spec)


def test_unknown_tool_is_reported_distinctly() -> None:
    registry = ToolRegistry()

    with pytest.raises(UnknownToolError) as excinfo:
        registry.execute("missing", {})
    assert "Unknown tool: missing" in str(excinfo.value)


def test_handler_failure_is_wrapped_with_tool_name() -> None:
    registry = ToolRegistry()

    def _boom(data: TextInput) -> str:
        raise ValueError(f"cannot handle {data.text}")

    registry.register(
        ToolSpec(name="boom", description="fails", args_schema=TextInput, handler=_boom)
    )

    with pytest.raises(ToolExecutionError) as excinfo:
        registry.execute("boom", {"text": "x"})
    assert excinfo.value.tool_name == "boom"
    assert isinstance(excinfo.value.cause, ValueError)


def test_observer_captures_latency_and_payload() -> None:
    registry = ToolRegistry()

    def _handler(data: TextInput) -> str:
        return data.text.upper()

    registry.register(
        ToolSpec(name="upper", description="uppercase", args_schema=TextInput, handler=_handler)
    )

    observed = []
    registry.set_observer(observed.append)
    result = registry.execute("upper", {"text": "hello"})
    registry.set_observer(None)

    assert result == "HELLO"
    assert len(observed) == 1
    assert observed[0].tool_name == "upper"
    assert observed[0].parameters == {"text": "hello"}
    assert observed[0].result == "HELLO"
    assert observed[0].latency_ms >= 0.0


def test_async_handlers_run_through_aexecute() -> None:
    registry = ToolRegistry()

    async def _handler(data: TextInput) -> str:
        await asyncio.sleep(0)
        return data.text[::-1]

    registry.register(
        ToolSpec(name="reverse", description="reverse", args_schema=TextInput, handler=_handler)
    )

    assert asyncio.run(registry.aexecute("reverse", {"text": "abc"})) == "cba"
    with pytest.raises(ToolExecutionError):
        registry.execute("reverse", {"text": "abc"})


def test_describe_lists_signatures_in_registration_order() -> None:
    registry = ToolRegistry()
    registry.register(_echo_spec())

    assert registry.describe() == "1. echo(value: int) - echo positive int"
