# backend/athena/models/availability.py
"""
Creator availability models for the Athena marketplace.

Classes:
    CreatorAvailability: Recurring weekly time range a creator takes bookings in
    DateOverride: Replaces the weekly ranges for one date (or blocks the date)
    CreatorSessionSettings: Per-creator booking rules and session offer

Times are creator-local wall-clock values; the creator's timezone lives on
CreatorSessionSettings.
"""

from enum import IntEnum
import logging
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    Date,
    Index,
    Integer,
    SmallInteger,
    String,
    Text,
    Time,
    UniqueConstraint,
)
import ulid

from ..database import Base
from ..domain.availability import BookingRules
from .types import UTCDateTime

logger = logging.getLogger(__name__)


class DayOfWeek(IntEnum):
    """Sunday-based day index, as stored in ``creator_availability.day_of_week``."""

    SUNDAY = 0
    MONDAY = 1
    TUESDAY = 2
    WEDNESDAY = 3
    THURSDAY = 4
    FRIDAY = 5
    SATURDAY = 6


class CreatorAvailability(Base):
    """One weekly range, e.g. Mondays 09:00-17:00."""

    __tablename__ = "creator_availability"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    creator_id = Column(String(64), nullable=False)
    day_of_week = Column(SmallInteger, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(UTCDateTime(), nullable=False)
    updated_at = Column(UTCDateTime(), nullable=False)

    __table_args__ = (
        CheckConstraint("day_of_week BETWEEN 0 AND 6", name="ck_availability_day_of_week"),
        CheckConstraint("start_time < end_time", name="ck_availability_time_order"),
        Index("ix_creator_availability_creator_day", "creator_id", "day_of_week"),
    )

    def __repr__(self) -> str:
        return (
            f"<CreatorAvailability {self.creator_id} day={self.day_of_week} "
            f"{self.start_time}-{self.end_time}>"
        )


class DateOverride(Base):
    """
    Date-specific availability.

    ``is_available`` False blocks the whole date. With a time range the
    range replaces the weekly ranges for that date; without one the weekly
    ranges apply unchanged.
    """

    __tablename__ = "date_overrides"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    creator_id = Column(String(64), nullable=False)
    date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=True)
    end_time = Column(Time, nullable=True)
    is_available = Column(Boolean, nullable=False, default=True)
    created_at = Column(UTCDateTime(), nullable=False)
    updated_at = Column(UTCDateTime(), nullable=False)

    __table_args__ = (
        UniqueConstraint("creator_id", "date", name="uq_date_overrides_creator_date"),
        CheckConstraint(
            "(start_time IS NULL AND end_time IS NULL) OR "
            "(start_time IS NOT NULL AND end_time IS NOT NULL AND start_time < end_time)",
            name="ck_date_overrides_time_range",
        ),
    )

    @property
    def has_time_range(self) -> bool:
        return self.start_time is not None and self.end_time is not None

    def __repr__(self) -> str:
        return f"<DateOverride {self.creator_id} {self.date} available={self.is_available}>"


class CreatorSessionSettings(Base):
    """Per-creator session offer and booking rules; one row per creator."""

    __tablename__ = "session_settings"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    creator_id = Column(String(64), nullable=False, unique=True)

    # Offer
    session_durations = Column(JSON, nullable=False)
    default_duration = Column(Integer, nullable=False)
    auto_confirm = Column(Boolean, nullable=False, default=False)
    allow_free_session = Column(Boolean, nullable=False, default=False)
    price_per_duration = Column(JSON, nullable=True)  # {"30": 25, "60": 45}

    # Booking rules
    buffer_time_minutes = Column(Integer, nullable=False, default=0)
    minimum_notice_hours = Column(Integer, nullable=False, default=0)
    max_advance_booking_days = Column(Integer, nullable=True)
    timezone = Column(String(50), nullable=False, default="UTC")

    # Copy shown to consumers
    welcome_message = Column(Text, nullable=True)
    cancellation_policy = Column(Text, nullable=True)

    created_at = Column(UTCDateTime(), nullable=False)
    updated_at = Column(UTCDateTime(), nullable=False)

    __table_args__ = (
        CheckConstraint("buffer_time_minutes >= 0", name="ck_session_settings_buffer"),
        CheckConstraint("minimum_notice_hours >= 0", name="ck_session_settings_notice"),
    )

    def booking_rules(self) -> BookingRules:
        return BookingRules(
            buffer_minutes=int(self.buffer_time_minutes or 0),
            minimum_notice_hours=int(self.minimum_notice_hours or 0),
            max_advance_booking_days=self.max_advance_booking_days,
            timezone=self.timezone or "UTC",
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "creator_id": self.creator_id,
            "session_durations": list(self.session_durations or []),
            "default_duration": self.default_duration,
            "buffer_time_minutes": self.buffer_time_minutes,
            "minimum_notice_hours": self.minimum_notice_hours,
            "max_advance_booking_days": self.max_advance_booking_days,
            "timezone": self.timezone,
        }
