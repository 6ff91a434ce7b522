"""Parser for the textual tool-call grammar emitted by the model.

Grammar::

    directive  := "TOOL_CALL:" ws* name "(" [param ("," param)*] ")"
    name       := [A-Za-z_][A-Za-z0-9_]*          (case-sensitive)
    param      := ws* key ws* "=" ws* value ws*
    value      := '"' ... '"' | "'" ... "'" | bare text

Commas and parentheses inside quotes do not split or close the argument
list. Values keep everything after the first `=`; one pair of surrounding
quotes is stripped.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from ragloop.errors import DirectiveSyntaxError
from ragloop.types import ToolCall

DIRECTIVE_MARKER = "TOOL_CALL:"
_DIRECTIVE_HEAD = re.compile(r"TOOL_CALL:\s*([A-Za-z_]\w*)\s*\(")
_QUOTES = ("'", '"')
# A quote only opens a string right after one of these.
_VALUE_OPENERS = "=(,"


@dataclass(frozen=True, slots=True)
class Directive:
    """One directive occurrence; `error` is set when it could not be closed."""

    name: str
    raw_arguments: str
    start: int
    end: int
    error: str | None = None


def contains_directive(text: str) -> bool:
    return _DIRECTIVE_HEAD.search(text) is not None


def find_directives(text: str) -> list[Directive]:
    """Return directives in left-to-right order of appearance."""

    directives: list[Directive] = []
    position = 0
    while True:
        head = _DIRECTIVE_HEAD.search(text, position)
        if head is None:
            return directives
        close = _find_closing_paren(text, head.end())
        if close is None:
            directives.append(
                Directive(
                    name=head.group(1),
                    raw_arguments=text[head.end() :],
                    start=head.start(),
                    end=len(text),
                    error=f"Malformed tool call: missing ')' after {head.group(1)}(",
                )
            )
            return directives
        directives.append(
            Directive(
                name=head.group(1),
                raw_arguments=text[head.end() : close],
                start=head.start(),
                end=close + 1,
            )
        )
        position = close + 1


def parse_parameters(raw_arguments: str) -> dict[str, str]:
    """Split `k1=v1, k2="v, 2"` into an ordered mapping of strings."""

    parameters: dict[str, str] = {}
    for piece in _split_top_level(raw_arguments):
        if not piece.strip():
            continue
        key, separator, value = piece.partition("=")
        key = key.strip()
        if not separator or not key:
            raise DirectiveSyntaxError(f"Malformed parameter '{piece.strip()}': expected key=value")
        parameters[key] = _unquote(value.strip())
    return parameters


def parse_tool_call(directive: Directive) -> ToolCall:
    if directive.error is not None:
        raise DirectiveSyntaxError(directive.error)
    return ToolCall(
        name=directive.name,
        raw_arguments=directive.raw_arguments,
        parameters=parse_parameters(directive.raw_arguments),
    )


def format_directive(name: str, **parameters: object) -> str:
    """Inverse of the parser; used by the offline chat model and prompts."""

    args = ", ".join(f"{key}={value}" for key, value in parameters.items())
    return f"{DIRECTIVE_MARKER} {name}({args})"


def _find_closing_paren(text: str, start: int) -> int | None:
    depth = 0
    quote: str | None = None
    previous = "("
    for index in range(start, len(text)):
        char = text[index]
        if quote is not None:
            if char == quote:
                quote = None
        elif char in _QUOTES and previous in _VALUE_OPENERS:
            quote = char
        elif char == "(":
            depth += 1
        elif char == ")":
            if depth == 0:
                return index
            depth -= 1
        if not char.isspace():
            previous = char
    return None


def _split_top_level(raw: str) -> list[str]:
    pieces: list[str] = []
    current: list[str] = []
    depth = 0
    quote: str | None = None
    previous = ","
    for char in raw:
        if quote is not None:
            if char == quote:
                quote = None
        elif char in _QUOTES and previous in _VALUE_OPENERS:
            quote = char
        elif char in "([{":
            depth += 1
        elif char in ")]}":
            depth = max(0, depth - 1)
        elif char == "," and depth == 0:
            pieces.append("".join(current))
            current = []
            previous = char
            continue
        current.append(char)
        if not char.isspace():
            previous = char
    pieces.append("".join(current))
    return pieces


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in _QUOTES:
        return value[1:-1]
    return value
