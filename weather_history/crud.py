"""
History store.

Why keep this separate from the tracker?
- the tracker only sees HistoryRecord objects, never ORM rows
- central place for the "newest N by timestamp" query
- owns the live subscriptions, so every write fans out to every listener
"""

from __future__ import annotations

import logging
import threading
from datetime import timezone
from typing import Callable, List, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from . import models
from .schemas import HistoryRecord

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 50

OnChange = Callable[[List[HistoryRecord]], None]


class PersistenceError(RuntimeError):
    """Raised when a history record could not be written."""
    pass


def row_to_record(row: models.WeatherRecord) -> HistoryRecord:
    """Convert ORM row -> immutable HistoryRecord."""
    ts = row.timestamp
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return HistoryRecord(
        id=row.id,
        city=row.city,
        temperature=row.temperature,
        condition=row.condition or "",
        timestamp=ts,
    )


class Subscription:
    """Handle returned by HistoryRepository.subscribe(); cancel() to stop updates."""

    def __init__(self, repository: "HistoryRepository", on_change: OnChange, limit: int):
        self._repository = repository
        self.on_change = on_change
        self.limit = limit
        self.active = True

    def cancel(self) -> None:
        if not self.active:
            return
        self.active = False
        self._repository._remove(self)


class HistoryRepository:
    """
    Append-only record store with a live "latest N" feed.

    Subscribers get the full current window (not deltas) once on subscribe
    and again after every successful add(), from whichever caller wrote.
    """

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory
        self._subscriptions: List[Subscription] = []
        self._lock = threading.Lock()

    def add(self, record: HistoryRecord) -> HistoryRecord:
        """Insert one record. No dedup: the same lookup twice is two rows."""
        ts = record.timestamp
        if ts.tzinfo is not None:
            ts = ts.astimezone(timezone.utc)
        row = models.WeatherRecord(
            id=record.id,
            city=record.city,
            temperature=record.temperature,
            condition=record.condition,
            timestamp=ts,
        )
        db: Session = self._session_factory()
        try:
            db.add(row)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("Could not save history record for %s: %s", record.city, e)
            raise PersistenceError(f"Could not save '{record.city}' to history.") from e
        finally:
            db.close()

        logger.info("Added history record %s (%s, %.1f°C)", record.id, record.city, record.temperature)
        self._notify()
        return record

    def latest(self, limit: int = DEFAULT_HISTORY_LIMIT) -> List[HistoryRecord]:
        """Newest `limit` records, ordered by timestamp descending."""
        db: Session = self._session_factory()
        try:
            rows = (
                db.query(models.WeatherRecord)
                .order_by(models.WeatherRecord.timestamp.desc())
                .limit(limit)
                .all()
            )
            return [row_to_record(r) for r in rows]
        finally:
            db.close()

    def subscribe(self, on_change: OnChange, limit: int = DEFAULT_HISTORY_LIMIT) -> Subscription:
        """
        Register a listener for the newest `limit` records.
        The current window is delivered before this returns.
        """
        sub = Subscription(self, on_change, limit)
        with self._lock:
            self._subscriptions.append(sub)
        logger.debug("History subscription added (limit=%d)", limit)
        self._deliver(sub)
        return sub

    def _remove(self, sub: Subscription) -> None:
        with self._lock:
            if sub in self._subscriptions:
                self._subscriptions.remove(sub)
        logger.debug("History subscription cancelled")

    def _notify(self) -> None:
        with self._lock:
            subs: Sequence[Subscription] = list(self._subscriptions)
        for sub in subs:
            self._deliver(sub)

    def _deliver(self, sub: Subscription) -> None:
        if not sub.active:
            return
        records = self.latest(sub.limit)
        try:
            sub.on_change(records)
        except Exception:
            # one broken listener must not starve the others or fail the write
            logger.exception("History subscriber raised while handling an update")
