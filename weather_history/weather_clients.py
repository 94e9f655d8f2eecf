"""
Weather client.

We intentionally separate API logic from the tracker and the FastAPI endpoints:
- easier to test in isolation (inject an httpx transport)
- one place that knows the OpenWeather URL, params and payload shape
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx
from pydantic import ValidationError

from .schemas import WeatherSnapshot

logger = logging.getLogger(__name__)


class WeatherError(RuntimeError):
    """Raised for user-facing weather lookup failures."""
    pass


class OpenWeatherClient:
    """
    OpenWeatherMap wrapper.

    Endpoint used:
    - Current weather:
        /data/2.5/weather?q=CITY&appid=KEY&units=metric

    Every failure (bad name, network, non-200, undecodable body) surfaces as
    a single WeatherError. There is no retry; the caller decides what to show.
    """

    def __init__(
        self,
        api_key: str,
        timeout_s: float = 10.0,
        base: str = "https://api.openweathermap.org",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.timeout_s = timeout_s
        self.base = base.rstrip("/")
        self._transport = transport

    async def fetch_weather(self, city: str) -> WeatherSnapshot:
        """
        Current conditions for a free-text city name.
        httpx percent-encodes the name into the query string.
        """
        failure = f"Could not fetch weather for '{city}'."
        params = {"q": city, "appid": self.api_key, "units": "metric"}

        try:
            async with httpx.AsyncClient(timeout=self.timeout_s, transport=self._transport) as client:
                r = await client.get(f"{self.base}/data/2.5/weather", params=params)
        except (httpx.HTTPError, httpx.InvalidURL, UnicodeEncodeError) as e:
            logger.warning("Weather request for %r failed: %s", city, e)
            raise WeatherError(failure) from e

        if r.status_code != 200:
            logger.warning("Weather lookup for %r returned HTTP %s", city, r.status_code)
            raise WeatherError(failure)

        try:
            snapshot = WeatherSnapshot.from_payload(r.json())
        except (ValueError, ValidationError) as e:
            logger.warning("Weather payload for %r could not be decoded: %s", city, e)
            raise WeatherError(failure) from e

        logger.info("Fetched weather for %s, %s: %.1f°C", snapshot.city, snapshot.country, snapshot.temperature)
        return snapshot
