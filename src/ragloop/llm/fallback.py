"""Deterministic chat model used when no external LLM is configured."""

from __future__ import annotations

import re

from ragloop.agent.directives import format_directive
from ragloop.agent.orchestrator import OBSERVATION_HEADER
from ragloop.llm.chat import ChatModel

_NUMBER = r"(-?\d+(?:\.\d+)?)"
_ARITHMETIC = re.compile(
    _NUMBER + r"\s*(plus|\+|minus|-|times|multiplied by|\*|x|divided by|/)\s*" + _NUMBER,
    flags=re.IGNORECASE,
)
_OPERATORS = {
    "plus": "add",
    "+": "add",
    "minus": "subtract",
    "-": "subtract",
    "times": "multiply",
    "multiplied by": "multiply",
    "*": "multiply",
    "x": "multiply",
    "divided by": "divide",
    "/": "divide",
}
_SQUARE_ROOT = re.compile(r"square root of " + _NUMBER, flags=re.IGNORECASE)
_TEMPERATURE = re.compile(
    _NUMBER + r"\s*°?\s*(celsius|fahrenheit|kelvin|c|f|k)\b\s+(?:to|in|into)\s+(celsius|fahrenheit|kelvin)",
    flags=re.IGNORECASE,
)
_UNITS = {"c": "celsius", "f": "fahrenheit", "k": "kelvin"}
_FORECAST = re.compile(r"(\d+)[- ]day forecast (?:for|in) ([^?.!,\n]+)", flags=re.IGNORECASE)
_WEATHER = re.compile(r"weather (?:in|for|at) ([^?.!,\n]+)", flags=re.IGNORECASE)
_RESULT_LINE = re.compile(r"^Tool (\w+) (result|error): (.*)$")

FALLBACK_REPLY = "I can help with weather, arithmetic and temperature conversions."


class DeterministicChatModel(ChatModel):
    """Rule-based stand-in for a chat model.

    Keeps the same text contract as a hosted model so the API works offline:
    plans a single `TOOL_CALL:` for recognizable requests, turns a
    `Tool results:` observation into a final answer, and answers RAG prompts
    with the highest-ranked passage.
    """

    async def complete(self, context: str) -> str:
        if "\nContext:\n" in context and context.rstrip().endswith("Answer:"):
            return _answer_from_context(context)

        last_turn = _last_user_turn(context)
        if last_turn.startswith(OBSERVATION_HEADER):
            return _summarize_observation(last_turn)
        return _plan(last_turn)


def _last_user_turn(context: str) -> str:
    marker = context.rfind("\nUser: ")
    if marker == -1:
        return context[len("User: ") :] if context.startswith("User: ") else context
    return context[marker + len("\nUser: ") :].strip()


def _plan(message: str) -> str:
    if match := _SQUARE_ROOT.search(message):
        return format_directive("squareRoot", number=match.group(1))

    if match := _TEMPERATURE.search(message):
        source = _UNITS.get(match.group(2).lower(), match.group(2).lower())
        target = match.group(3).lower()
        if source != target:
            name = f"{source}To{target.capitalize()}"
            return format_directive(name, **{source: match.group(1)})

    if match := _ARITHMETIC.search(message):
        operator = _OPERATORS[match.group(2).lower()]
        return format_directive(operator, a=match.group(1), b=match.group(3))

    if match := _FORECAST.search(message):
        location = match.group(2).strip()
        return format_directive("getWeatherForecast", location=f'"{location}"', days=match.group(1))

    if match := _WEATHER.search(message):
        return format_directive("getCurrentWeather", location=f'"{match.group(1).strip()}"')

    return FALLBACK_REPLY


def _summarize_observation(observation: str) -> str:
    results: list[str] = []
    errors: list[str] = []
    for line in observation.splitlines():
        match = _RESULT_LINE.match(line.strip())
        if match is None:
            continue
        (results if match.group(2) == "result" else errors).append(match.group(3))

    if results:
        return "Here is what I found: " + "; ".join(results)
    if errors:
        return "I could not complete that request: " + "; ".join(errors)
    return FALLBACK_REPLY


def _answer_from_context(prompt: str) -> str:
    body = prompt.split("\nContext:\n", 1)[1]
    context = body.split("\n\nQuestion:", 1)[0].strip()
    first_passage = context.split("\n\n", 1)[0].strip()
    return f"According to the documents: {first_passage}"
