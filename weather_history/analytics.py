"""
Analytics over the history window, plus the day/night check.

Both are pure functions: no clock access, no retained state. The tracker
calls recompute() on every subscription delivery, so the result can never
drift from the records it was computed over.
"""

from __future__ import annotations

from collections import Counter
from datetime import datetime
from typing import Optional, Sequence, Union

from .schemas import AnalyticsResult, CityCount, HistoryRecord, WeatherSnapshot

# Epoch seconds or aware datetimes; all three arguments must share one.
Instant = Union[int, float, datetime]


def recompute(records: Sequence[HistoryRecord]) -> AnalyticsResult:
    """
    Average temperature, hottest record and per-city counts.

    records are newest-first, so when several records share the maximum
    temperature the most recent one wins.
    """
    if not records:
        return AnalyticsResult()

    average = sum(r.temperature for r in records) / len(records)

    hottest: Optional[HistoryRecord] = None
    for rec in records:
        # strict > keeps the first maximum
        if hottest is None or rec.temperature > hottest.temperature:
            hottest = rec

    counts = Counter(r.city for r in records)
    city_counts = [
        CityCount(city=city, count=count)
        for city, count in sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))
    ]

    return AnalyticsResult(average=average, hottest=hottest, city_counts=city_counts)


def is_night(observation: Instant, sunrise: Instant, sunset: Instant) -> bool:
    """Night is strictly before sunrise or strictly after sunset."""
    return observation < sunrise or observation > sunset


def snapshot_is_night(snapshot: WeatherSnapshot) -> bool:
    return is_night(snapshot.observed_at, snapshot.sunrise, snapshot.sunset)
