"""
WeatherHistoryTracker: the state the presentation layer observes.

Flow:
- fetch_and_save(city): lookup -> show snapshot -> append history record
- the repository subscription fires -> history replaced -> analytics recomputed

Failures from either remote step end up in error_message; nothing is retried.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from .analytics import recompute, snapshot_is_night
from .crud import DEFAULT_HISTORY_LIMIT, HistoryRepository, PersistenceError, Subscription
from .schemas import AnalyticsResult, HistoryRecord, TrackerState, WeatherSnapshot
from .weather_clients import OpenWeatherClient, WeatherError

logger = logging.getLogger(__name__)


class WeatherHistoryTracker:

    def __init__(
        self,
        client: OpenWeatherClient,
        repository: HistoryRepository,
        limit: int = DEFAULT_HISTORY_LIMIT,
    ):
        self.client = client
        self.repository = repository
        self.limit = limit

        self.current_weather: Optional[WeatherSnapshot] = None
        self.history: List[HistoryRecord] = []
        self.analytics: AnalyticsResult = AnalyticsResult()
        self.error_message: Optional[str] = None
        self.is_loading: bool = False

        self._subscription: Optional[Subscription] = None

    # -------------------------
    # Live history
    # -------------------------

    @property
    def listening(self) -> bool:
        return self._subscription is not None

    def start_listening(self) -> None:
        if self._subscription is not None:
            return
        self._subscription = self.repository.subscribe(self._on_history, limit=self.limit)
        logger.info("Listening for history updates (limit=%d)", self.limit)

    def stop_listening(self) -> None:
        if self._subscription is None:
            return
        self._subscription.cancel()
        self._subscription = None
        logger.info("Stopped listening for history updates")

    def _on_history(self, records: List[HistoryRecord]) -> None:
        self.history = records
        self.analytics = recompute(records)

    # -------------------------
    # Lookup + save
    # -------------------------

    async def fetch_and_save(self, city: str) -> None:
        """
        Look up `city` and record it in history.
        Blank input is ignored: no request, no state change.
        """
        name = (city or "").strip()
        if not name:
            return

        self.is_loading = True
        self.error_message = None
        try:
            weather = await self.client.fetch_weather(name)
            self.current_weather = weather
            # the snapshot stays on screen even if saving fails below
            self.repository.add(HistoryRecord.from_snapshot(weather))
        except (WeatherError, PersistenceError) as e:
            logger.info("Search for %r failed: %s", name, e)
            self.error_message = str(e)
        finally:
            self.is_loading = False

    def clear_error(self) -> None:
        self.error_message = None

    # -------------------------
    # Derived presentation state
    # -------------------------

    @property
    def is_night(self) -> bool:
        if self.current_weather is None:
            return False
        return snapshot_is_night(self.current_weather)

    def state(self) -> TrackerState:
        weather = self.current_weather
        return TrackerState(
            current_weather=weather,
            is_night=self.is_night,
            local_time=weather.local_time if weather else None,
            error_message=self.error_message,
            is_loading=self.is_loading,
            analytics=self.analytics,
            top_city=self.analytics.top_city,
        )
