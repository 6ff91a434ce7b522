"""Built-in tool implementations for the agent."""

from __future__ import annotations

import math
import random

from pydantic import BaseModel, ConfigDict, Field

from ragloop.agent.registry import ToolRegistry, ToolSpec
from ragloop.errors import DomainError
from ragloop.obs.logging import get_logger

logger = get_logger(__name__)

ABSOLUTE_ZERO_C = -273.15
ABSOLUTE_ZERO_F = -459.67
_CONDITIONS = ("sunny", "cloudy", "partly cloudy", "rainy")


class LocationInput(BaseModel):
    location: str = Field(min_length=1)


class ForecastInput(BaseModel):
    location: str = Field(min_length=1)
    days: int


class _NumericInput(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)


class BinaryOperandsInput(_NumericInput):
    a: float
    b: float


class PowerInput(_NumericInput):
    base: float
    exponent: float


class NumberInput(_NumericInput):
    number: float


class CelsiusInput(_NumericInput):
    celsius: float


class FahrenheitInput(_NumericInput):
    fahrenheit: float


class KelvinInput(_NumericInput):
    kelvin: float


class WeatherService:
    """Simulated weather data; values vary but the output shape does not."""

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    def current(self, location: str) -> str:
        logger.info("Getting weather for location: %s", location)
        temperature = 15 + self._rng.randrange(20)
        condition = self._rng.choice(_CONDITIONS)
        return f"The weather in {location} is currently {temperature}°C and {condition}."

    def forecast(self, location: str, days: int) -> str:
        logger.info("Getting %d-day forecast for location: %s", days, location)
        if days < 1 or days > 7:
            return "Forecast is available for 1 to 7 days only."
        lines = [f"{days}-day forecast for {location}:"]
        for day in range(1, days + 1):
            temperature = 15 + self._rng.randrange(20)
            lines.append(f"Day {day}: {temperature}°C, {self._rng.choice(_CONDITIONS)}")
        return "\n".join(lines)


def add(a: float, b: float) -> float:
    return _finite(a + b)


def subtract(a: float, b: float) -> float:
    return _finite(a - b)


def multiply(a: float, b: float) -> float:
    return _finite(a * b)


def divide(a: float, b: float) -> float:
    if b == 0:
        raise DomainError("Cannot divide by zero")
    return _finite(a / b)


def power(base: float, exponent: float) -> float:
    if base == 0 and exponent < 0:
        raise DomainError("Zero cannot be raised to a negative power")
    if base < 0 and not float(exponent).is_integer():
        raise DomainError("Negative base requires an integer exponent")
    try:
        return _finite(math.pow(base, exponent))
    except OverflowError as exc:
        raise DomainError("Result is too large") from exc


def square_root(number: float) -> float:
    if number < 0:
        raise DomainError("Cannot calculate square root of negative number")
    return _finite(math.sqrt(number))


def celsius_to_fahrenheit(celsius: float) -> str:
    return f"{celsius:.1f}°C = {celsius * 9.0 / 5.0 + 32.0:.1f}°F"


def fahrenheit_to_celsius(fahrenheit: float) -> str:
    return f"{fahrenheit:.1f}°F = {(fahrenheit - 32.0) * 5.0 / 9.0:.1f}°C"


def celsius_to_kelvin(celsius: float) -> str:
    if celsius < ABSOLUTE_ZERO_C:
        raise DomainError("Temperature cannot be below absolute zero (-273.15°C)")
    return f"{celsius:.1f}°C = {celsius - ABSOLUTE_ZERO_C:.2f} K"


def kelvin_to_celsius(kelvin: float) -> str:
    _check_kelvin(kelvin)
    return f"{kelvin:.2f} K = {kelvin + ABSOLUTE_ZERO_C:.1f}°C"


def fahrenheit_to_kelvin(fahrenheit: float) -> str:
    if fahrenheit < ABSOLUTE_ZERO_F:
        raise DomainError("Temperature cannot be below absolute zero (-459.67°F)")
    kelvin = (fahrenheit - 32.0) * 5.0 / 9.0 - ABSOLUTE_ZERO_C
    return f"{fahrenheit:.1f}°F = {max(kelvin, 0.0):.2f} K"


def kelvin_to_fahrenheit(kelvin: float) -> str:
    _check_kelvin(kelvin)
    return f"{kelvin:.2f} K = {(kelvin + ABSOLUTE_ZERO_C) * 9.0 / 5.0 + 32.0:.1f}°F"


def format_number(value: float) -> str:
    """Render integral floats without a fractional part (17.0 -> "17")."""

    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def register_builtin_tools(
    registry: ToolRegistry,
    *,
    weather: WeatherService | None = None,
) -> None:
    """Register the fixed tool set exposed to the agent.

    Tools:
    - `getCurrentWeather` / `getWeatherForecast`: simulated weather.
    - `add`, `subtract`, `multiply`, `divide`, `power`, `squareRoot`.
    - Pairwise Celsius / Fahrenheit / Kelvin conversions.
    """

    weather = weather or WeatherService()

    def _binary(operation):
        def _handler(data: BinaryOperandsInput) -> str:
            logger.info("Calculating %s(%s, %s)", operation.__name__, data.a, data.b)
            return format_number(operation(data.a, data.b))

        return _handler

    def _power(data: PowerInput) -> str:
        return format_number(power(data.base, data.exponent))

    def _square_root(data: NumberInput) -> str:
        return format_number(square_root(data.number))

    specs = [
        ToolSpec(
            name="getCurrentWeather",
            description="Get current weather for a location",
            args_schema=LocationInput,
            handler=lambda data: weather.current(data.location),
            tags=["weather"],
        ),
        ToolSpec(
            name="getWeatherForecast",
            description="Get weather forecast (1-7 days)",
            args_schema=ForecastInput,
            handler=lambda data: weather.forecast(data.location, data.days),
            tags=["weather"],
        ),
        ToolSpec(
            name="add",
            description="Calculate the sum of two numbers",
            args_schema=BinaryOperandsInput,
            handler=_binary(add),
            tags=["math"],
        ),
        ToolSpec(
            name="subtract",
            description="Calculate the difference between two numbers (a - b)",
            args_schema=BinaryOperandsInput,
            handler=_binary(subtract),
            tags=["math"],
        ),
        ToolSpec(
            name="multiply",
            description="Calculate the product of two numbers",
            args_schema=BinaryOperandsInput,
            handler=_binary(multiply),
            tags=["math"],
        ),
        ToolSpec(
            name="divide",
            description="Divide a by b",
            args_schema=BinaryOperandsInput,
            handler=_binary(divide),
            tags=["math"],
        ),
        ToolSpec(
            name="power",
            description="Raise base to the given exponent",
            args_schema=PowerInput,
            handler=_power,
            tags=["math"],
        ),
        ToolSpec(
            name="squareRoot",
            description="Calculate the square root of a number",
            args_schema=NumberInput,
            handler=_square_root,
            tags=["math"],
        ),
        ToolSpec(
            name="celsiusToFahrenheit",
            description="Convert Celsius to Fahrenheit",
            args_schema=CelsiusInput,
            handler=lambda data: celsius_to_fahrenheit(data.celsius),
            tags=["temperature"],
        ),
        ToolSpec(
            name="fahrenheitToCelsius",
            description="Convert Fahrenheit to Celsius",
            args_schema=FahrenheitInput,
            handler=lambda data: fahrenheit_to_celsius(data.fahrenheit),
            tags=["temperature"],
        ),
        ToolSpec(
            name="celsiusToKelvin",
            description="Convert Celsius to Kelvin",
            args_schema=CelsiusInput,
            handler=lambda data: celsius_to_kelvin(data.celsius),
            tags=["temperature"],
        ),
        ToolSpec(
            name="kelvinToCelsius",
            description="Convert Kelvin to Celsius",
            args_schema=KelvinInput,
            handler=lambda data: kelvin_to_celsius(data.kelvin),
            tags=["temperature"],
        ),
        ToolSpec(
            name="fahrenheitToKelvin",
            description="Convert Fahrenheit to Kelvin",
            args_schema=FahrenheitInput,
            handler=lambda data: fahrenheit_to_kelvin(data.fahrenheit),
            tags=["temperature"],
        ),
        ToolSpec(
            name="kelvinToFahrenheit",
            description="Convert Kelvin to Fahrenheit",
            args_schema=KelvinInput,
            handler=lambda data: kelvin_to_fahrenheit(data.kelvin),
            tags=["temperature"],
        ),
    ]
    for spec in specs:
        registry.register(spec)


def _check_kelvin(kelvin: float) -> None:
    if kelvin < 0:
        raise DomainError("Temperature cannot be below absolute zero (0 K)")


def _finite(value: float) -> float:
    if math.isnan(value) or math.isinf(value):
        raise DomainError("Result is not a finite number")
    return value
