"""
Shared fixtures. No test touches the network or the real database file.

Settings are read at import time, so the environment is prepared before any
weather_history module is imported.
"""

import os
import tempfile

_TMP_DIR = tempfile.mkdtemp(prefix="weather-history-tests-")
os.environ.setdefault("OPENWEATHER_API_KEY", "test-key")
os.environ["SQLITE_PATH"] = os.path.join(_TMP_DIR, "app.sqlite3")

import pytest

from weather_history.crud import HistoryRepository
from weather_history.db import make_engine, make_session_factory
from weather_history.schemas import WeatherSnapshot
from weather_history.weather_clients import WeatherError


def make_payload(
    name: str = "Cairo",
    temp: float = 35.0,
    description: str = "clear sky",
    dt: int = 1_700_000_000,
    sunrise: int = 1_699_990_000,
    sunset: int = 1_700_030_000,
) -> dict:
    """Minimal OpenWeather /data/2.5/weather response."""
    return {
        "name": name,
        "main": {"temp": temp, "feels_like": temp - 1.5, "humidity": 40},
        "weather": [{"description": description, "icon": "01d"}],
        "sys": {"sunrise": sunrise, "sunset": sunset, "country": "EG"},
        "wind": {"speed": 3.6},
        "timezone": 7200,
        "dt": dt,
    }


class FakeWeatherClient:
    """Stands in for OpenWeatherClient; snapshots keyed by city name."""

    def __init__(self, payloads=None):
        self.payloads = payloads or {}
        self.calls = []

    async def fetch_weather(self, city: str) -> WeatherSnapshot:
        self.calls.append(city)
        if city not in self.payloads:
            raise WeatherError(f"Could not fetch weather for '{city}'.")
        return WeatherSnapshot.from_payload(self.payloads[city])


@pytest.fixture
def repository():
    engine = make_engine("sqlite://")
    yield HistoryRepository(make_session_factory(engine))
    engine.dispose()


@pytest.fixture
def fake_client():
    return FakeWeatherClient({
        "Cairo": make_payload("Cairo", 35.0, "clear sky"),
        "Paris": make_payload("Paris", 10.0, "light rain"),
    })
