"""
FastAPI entrypoint.

This file focuses on:
- routing
- request/response handling
- wiring together settings + DB + client + repository + tracker

Run with:
    uvicorn weather_history.main:app --reload
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, WebSocket, WebSocketDisconnect

from .settings import settings
from .db import engine, make_session_factory
from .analytics import recompute
from .crud import HistoryRepository
from .schemas import AnalyticsResult, HistoryFeedMessage, HistoryRecord, SearchRequest, TrackerState
from .tracker import WeatherHistoryTracker
from .weather_clients import OpenWeatherClient

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Creates the history table on first run.
SessionLocal = make_session_factory(engine)

# Collaborators (constructed once).
owm = OpenWeatherClient(
    settings.openweather_api_key,
    timeout_s=settings.request_timeout_s,
    base=settings.openweather_base_url,
)
repository = HistoryRepository(SessionLocal)
tracker = WeatherHistoryTracker(owm, repository, limit=settings.history_limit)


def get_tracker() -> WeatherHistoryTracker:
    """Dependency hook; tests override it with a tracker on a fake client."""
    return tracker


@asynccontextmanager
async def lifespan(app: FastAPI):
    tracker.start_listening()
    try:
        yield
    finally:
        tracker.stop_listening()


app = FastAPI(title=settings.app_name, lifespan=lifespan)


@app.get("/")
def index():
    return {"app": settings.app_name, "history_limit": settings.history_limit}


# -------------------------
# Search + state
# -------------------------

@app.post("/api/search", response_model=TrackerState)
async def api_search(payload: SearchRequest, t: WeatherHistoryTracker = Depends(get_tracker)):
    """
    Look up a city and record it in history.
    Failures come back as error_message with a 200, like the rest of the state.
    """
    await t.fetch_and_save(payload.city)
    return t.state()


@app.get("/api/state", response_model=TrackerState)
def api_state(t: WeatherHistoryTracker = Depends(get_tracker)):
    return t.state()


@app.delete("/api/error", response_model=TrackerState)
def api_clear_error(t: WeatherHistoryTracker = Depends(get_tracker)):
    """Dismiss the current error message."""
    t.clear_error()
    return t.state()


# -------------------------
# History + analytics
# -------------------------

@app.get("/api/history", response_model=list[HistoryRecord])
def api_history(t: WeatherHistoryTracker = Depends(get_tracker)):
    """Current history window, newest first."""
    return t.history


@app.get("/api/analytics", response_model=AnalyticsResult)
def api_analytics(t: WeatherHistoryTracker = Depends(get_tracker)):
    return t.analytics


@app.websocket("/ws/history")
async def ws_history(websocket: WebSocket, t: WeatherHistoryTracker = Depends(get_tracker)):
    """
    Live history feed.
    Pushes {history, analytics} on connect and after every write; the
    repository subscription lives exactly as long as the socket.
    """
    await websocket.accept()
    loop = asyncio.get_running_loop()
    queue: asyncio.Queue = asyncio.Queue()

    # writes may happen on another thread, so hop onto this loop
    subscription = t.repository.subscribe(
        lambda records: loop.call_soon_threadsafe(queue.put_nowait, records),
        limit=t.limit,
    )

    async def push():
        while True:
            records = await queue.get()
            message = HistoryFeedMessage(history=records, analytics=recompute(records))
            await websocket.send_text(message.model_dump_json())

    async def drain():
        # only here to notice the client going away; other frames are ignored
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                return

    tasks = {asyncio.create_task(push()), asyncio.create_task(drain())}
    try:
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for task in pending:
            task.cancel()
        for task in done:
            exc = task.exception()
            if exc is not None and not isinstance(exc, WebSocketDisconnect):
                raise exc
    finally:
        for task in tasks:
            task.cancel()
        subscription.cancel()
        logger.debug("History WebSocket closed")
