"""
weather_agent/weather.py
------------------------
OpenWeatherMap current-conditions client and the ``getWeather`` tool.

Every failure propagates: a bad key, an unknown location, a malformed body or a
transport error all surface to the caller.  There is no retry and no fallback
text.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx
from pydantic import BaseModel, Field

from weather_agent.config import Settings
from weather_agent.errors import WeatherAPIError
from weather_agent.tools import Tool

logger = logging.getLogger(__name__)

CURRENT_WEATHER_PATH = "/data/2.5/weather"

WEATHER_SENTENCE = "The current weather in {location} is: {temperature} Degrees in Celsius"


class WeatherQuery(BaseModel):
    """Input schema shared by the getWeather tool and helloFlow."""

    location: str = Field(..., description="The location to get the current weather for")


@dataclass(frozen=True)
class WeatherReading:
    location: str
    temperature: float


def format_temperature(value: float) -> str:
    """Render a temperature without a trailing ``.0`` for whole numbers."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def format_weather(location: str, temperature: float) -> str:
    return WEATHER_SENTENCE.format(location=location, temperature=format_temperature(temperature))


class OpenWeatherClient:
    """
    Minimal async client for the OpenWeatherMap current-weather endpoint.

    A fresh ``httpx.AsyncClient`` is opened per lookup.  ``transport`` lets
    tests substitute ``httpx.MockTransport``.
    """

    def __init__(
        self,
        api_key: str | None,
        *,
        base_url: str = "https://api.openweathermap.org",
        units: str = "metric",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.units = units
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(
        cls, settings: Settings, transport: httpx.AsyncBaseTransport | None = None
    ) -> "OpenWeatherClient":
        return cls(
            settings.openweather_api_key,
            base_url=settings.openweather_base_url,
            timeout=settings.openweather_timeout,
            transport=transport,
        )

    async def get_current(self, location_name: str) -> WeatherReading:
        if not self.api_key:
            raise WeatherAPIError("OPENWEATHER_API_KEY is not configured.")

        params = {"q": location_name, "units": self.units, "appid": self.api_key}
        async with httpx.AsyncClient(
            base_url=self.base_url, timeout=self.timeout, transport=self._transport
        ) as client:
            response = await client.get(CURRENT_WEATHER_PATH, params=params)

        payload = _json_or_none(response)
        if response.is_error:
            message = payload.get("message") if isinstance(payload, dict) else None
            raise WeatherAPIError(
                f"Weather lookup for '{location_name}' failed: "
                f"{response.status_code} {message or response.reason_phrase}",
                status_code=response.status_code,
            )

        try:
            temperature = payload["main"]["temp"]
        except (KeyError, TypeError) as exc:
            raise WeatherAPIError(
                f"Weather response for '{location_name}' has no current temperature.",
                status_code=response.status_code,
            ) from exc
        if isinstance(temperature, bool) or not isinstance(temperature, (int, float)):
            raise WeatherAPIError(
                f"Weather response for '{location_name}' has a non-numeric temperature: {temperature!r}",
                status_code=response.status_code,
            )

        return WeatherReading(location=payload.get("name") or location_name, temperature=temperature)


def _json_or_none(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


# ---------------------------------------------------------------------------
# Tool
# ---------------------------------------------------------------------------

def make_weather_tool(
    settings: Settings, transport: httpx.AsyncBaseTransport | None = None
) -> Tool:
    """Build the ``getWeather`` tool bound to ``settings``."""

    async def get_weather(query: WeatherQuery) -> str:
        logger.info("[Tool] getWeather -> %r", query.location)
        client = OpenWeatherClient.from_settings(settings, transport=transport)
        reading = await client.get_current(query.location)
        logger.debug("[Tool] getWeather result: %s°C (%s)", reading.temperature, reading.location)
        return format_weather(query.location, reading.temperature)

    return Tool(
        name="getWeather",
        description="Gets the current weather in a given location",
        input_model=WeatherQuery,
        handler=get_weather,
    )
