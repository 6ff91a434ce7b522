import pytest

from ragloop.agent.directives import (
    contains_directive,
    find_directives,
    format_directive,
    parse_parameters,
    parse_tool_call,
)
from ragloop.errors import DirectiveSyntaxError


def test_single_directive_is_parsed() -> None:
    directives = find_directives("Let me compute.\nTOOL_CALL: add(a=5, b=12)")

    assert len(directives) == 1
    call = parse_tool_call(directives[0])
    assert call.name == "add"
    assert call.parameters == {"a": "5", "b": "12"}


def test_multiple_directives_keep_textual_order() -> None:
    text = (
        "TOOL_CALL: celsiusToFahrenheit(celsius=20)\n"
        "and then TOOL_CALL: getCurrentWeather(location=\"Lisbon\")\n"
        "TOOL_CALL:add(a=1,b=2)"
    )

    names = [directive.name for directive in find_directives(text)]

    assert names == ["celsiusToFahrenheit", "getCurrentWeather", "add"]


def test_quoted_values_may_contain_commas_and_parentheses() -> None:
    [directive] = find_directives('TOOL_CALL: getWeatherForecast(location="Paris, (FR)", days=3)')

    assert parse_tool_call(directive).parameters == {"location": "Paris, (FR)", "days": "3"}


def test_value_keeps_text_after_first_equals_sign() -> None:
    assert parse_parameters("expr=a=b, flag='x'") == {"expr": "a=b", "flag": "x"}


def test_apostrophe_inside_bare_value_is_not_a_quote() -> None:
    [directive] = find_directives("TOOL_CALL: getCurrentWeather(location=O'Hare)")

    assert parse_tool_call(directive).parameters == {"location": "O'Hare"}


def test_empty_argument_list() -> None:
    [directive] = find_directives("TOOL_CALL: ping()")

    assert parse_tool_call(directive).parameters == {}


def test_parameter_without_equals_is_malformed() -> None:
    with pytest.raises(DirectiveSyntaxError):
        parse_parameters("a=1, 12")


def test_unterminated_directive_is_reported_not_dropped() -> None:
    directives = find_directives("TOOL_CALL: add(a=1, b=2")

    assert len(directives) == 1
    assert directives[0].error is not None
    with pytest.raises(DirectiveSyntaxError):
        parse_tool_call(directives[0])


def test_tool_names_are_case_sensitive_and_marker_is_exact() -> None:
    assert contains_directive("TOOL_CALL: Add(a=1, b=2)")
    assert find_directives("TOOL_CALL: Add(a=1, b=2)")[0].name == "Add"
    assert not contains_directive("tool_call: add(a=1, b=2)")
    assert not contains_directive("Use the TOOL_CALL: marker to request tools.")


def test_format_directive_round_trips_through_parser() -> None:
    text = format_directive("divide", a=10, b=4)

    assert text == "TOOL_CALL: divide(a=10, b=4)"
    assert parse_tool_call(find_directives(text)[0]).parameters == {"a": "10", "b": "4"}
