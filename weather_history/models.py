"""
ORM models.

One row per successful lookup. Only the fields needed for the history list
and the analytics are stored; the full weather snapshot is not persisted.
"""

from sqlalchemy import String, Float, DateTime
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime
from .db import Base


class WeatherRecord(Base):
    __tablename__ = "weather_records"

    # uuid4 string assigned by HistoryRecord at creation
    id: Mapped[str] = mapped_column(String(36), primary_key=True)

    # Resolved city name as returned by the weather API (case preserved)
    city: Mapped[str] = mapped_column(String(255), index=True)
    temperature: Mapped[float] = mapped_column(Float)
    condition: Mapped[str] = mapped_column(String(255), default="")

    # Stored as UTC; SQLite drops tzinfo so the repository re-attaches it on read
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)
