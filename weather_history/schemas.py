"""
Pydantic schemas.

Why:
- Immutable value objects for records, snapshots and analytics
- Decoding the OpenWeather payload doubles as its validation
- Defines the JSON contract of the HTTP endpoints
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _from_epoch(seconds: int) -> datetime:
    return datetime.fromtimestamp(seconds, tz=timezone.utc)


# -------------------------
# OpenWeather /data/2.5/weather payload (only the fields we read)
# -------------------------

class _Main(BaseModel):
    temp: float
    feels_like: float
    humidity: int


class _Condition(BaseModel):
    description: str
    icon: str = ""


class _Sys(BaseModel):
    sunrise: int
    sunset: int
    country: str = ""


class _Wind(BaseModel):
    speed: float


class OpenWeatherPayload(BaseModel):
    name: str
    main: _Main
    weather: List[_Condition]
    sys: _Sys
    wind: _Wind
    timezone: int  # seconds from UTC
    dt: int        # observation time (UTC seconds)


# -------------------------
# Domain objects
# -------------------------

class WeatherSnapshot(BaseModel):
    """Current conditions for one city, produced fresh per lookup."""
    model_config = ConfigDict(frozen=True)

    city: str
    country: str = ""
    temperature: float
    feels_like: float
    humidity: int
    wind_speed: float
    condition: str = ""
    icon: str = ""
    utc_offset: int = 0
    sunrise: datetime
    sunset: datetime
    observed_at: datetime

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "WeatherSnapshot":
        """
        Decode a raw OpenWeather response.
        Raises pydantic.ValidationError when a required field is missing or mistyped.
        """
        payload = OpenWeatherPayload.model_validate(data)
        first = payload.weather[0] if payload.weather else None
        return cls(
            city=payload.name,
            country=payload.sys.country,
            temperature=payload.main.temp,
            feels_like=payload.main.feels_like,
            humidity=payload.main.humidity,
            wind_speed=payload.wind.speed,
            condition=first.description if first else "",
            icon=first.icon if first else "",
            utc_offset=payload.timezone,
            sunrise=_from_epoch(payload.sys.sunrise),
            sunset=_from_epoch(payload.sys.sunset),
            observed_at=_from_epoch(payload.dt),
        )

    @property
    def local_time(self) -> datetime:
        """Wall-clock time at the city when the observation was made."""
        return (self.observed_at + timedelta(seconds=self.utc_offset)).replace(tzinfo=None)


class HistoryRecord(BaseModel):
    """One persisted lookup. Immutable once created."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    city: str
    temperature: float
    condition: str = ""
    timestamp: datetime = Field(default_factory=_utcnow)

    @classmethod
    def from_snapshot(cls, snapshot: WeatherSnapshot) -> "HistoryRecord":
        return cls(
            city=snapshot.city,
            temperature=snapshot.temperature,
            condition=snapshot.condition,
        )


class CityCount(BaseModel):
    model_config = ConfigDict(frozen=True)

    city: str
    count: int


class AnalyticsResult(BaseModel):
    """Aggregates over the current history window."""
    model_config = ConfigDict(frozen=True)

    average: float = 0.0
    hottest: Optional[HistoryRecord] = None
    city_counts: List[CityCount] = Field(default_factory=list)

    @property
    def top_city(self) -> Optional[str]:
        return self.city_counts[0].city if self.city_counts else None


# -------------------------
# HTTP payloads
# -------------------------

class SearchRequest(BaseModel):
    """
    City lookup request. Blank names are accepted here and ignored by the
    tracker, so no min_length validation.
    """
    city: str = ""


class TrackerState(BaseModel):
    """Everything the presentation layer renders."""
    current_weather: Optional[WeatherSnapshot] = None
    is_night: bool = False
    local_time: Optional[datetime] = None
    error_message: Optional[str] = None
    is_loading: bool = False
    analytics: AnalyticsResult = Field(default_factory=AnalyticsResult)
    top_city: Optional[str] = None


class HistoryFeedMessage(BaseModel):
    """One push on the live history WebSocket."""
    history: List[HistoryRecord]
    analytics: AnalyticsResult
