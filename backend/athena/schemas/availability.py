# backend/athena/schemas/availability.py
"""
Availability and session settings schemas.

Times are creator-local wall-clock values ("09:00"); the creator's
timezone is part of their session settings.
"""

import datetime
from typing import Any, Dict, List, Optional

from pydantic import ConfigDict, Field, field_validator, model_validator

from .base import StandardizedModel, StrictModel

DateType = datetime.date
TimeType = datetime.time


class WeeklyRangeInput(StrictModel):
    """One weekly range; day_of_week is Sunday-based (0=Sunday, 6=Saturday)."""

    day_of_week: int = Field(..., ge=0, le=6)
    start_time: TimeType
    end_time: TimeType
    is_active: bool = True

    @field_validator("end_time")
    @classmethod
    def validate_time_order(cls, v: TimeType, info: Any) -> TimeType:
        """Ensure end time is after start time."""
        start = info.data.get("start_time") if isinstance(info.data, dict) else None
        if start is not None and v <= start:
            raise ValueError("End time must be after start time")
        return v


class WeeklyAvailabilitySet(StrictModel):
    ranges: List[WeeklyRangeInput] = Field(default_factory=list)


class WeeklyRangeResponse(StandardizedModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    creator_id: str
    day_of_week: int
    start_time: TimeType
    end_time: TimeType
    is_active: bool


class DateOverrideInput(StrictModel):
    """
    Availability for one date. ``is_available`` False blocks the date; a
    time range replaces the weekly ranges for it.
    """

    date: DateType
    start_time: Optional[TimeType] = None
    end_time: Optional[TimeType] = None
    is_available: bool = True

    @model_validator(mode="after")
    def validate_time_range(self) -> "DateOverrideInput":
        if (self.start_time is None) != (self.end_time is None):
            raise ValueError("start_time and end_time must be given together")
        if self.start_time is not None and self.end_time <= self.start_time:
            raise ValueError("End time must be after start time")
        return self


class DateOverridesSet(StrictModel):
    overrides: List[DateOverrideInput] = Field(default_factory=list)


class DateOverrideResponse(StandardizedModel):
    model_config = ConfigDict(from_attributes=True)

    date: DateType
    start_time: Optional[TimeType] = None
    end_time: Optional[TimeType] = None
    is_available: bool


class SessionSettingsUpdate(StrictModel):
    """Partial update; omitted fields keep their value."""

    session_durations: Optional[List[int]] = None
    default_duration: Optional[int] = Field(None, ge=15, le=180)
    buffer_time_minutes: Optional[int] = Field(None, ge=0, le=60)
    minimum_notice_hours: Optional[int] = Field(None, ge=0, le=168)
    max_advance_booking_days: Optional[int] = Field(None, ge=1, le=90)
    auto_confirm: Optional[bool] = None
    allow_free_session: Optional[bool] = None
    price_per_duration: Optional[Dict[str, float]] = None
    timezone: Optional[str] = Field(None, max_length=50)
    welcome_message: Optional[str] = Field(None, max_length=2000)
    cancellation_policy: Optional[str] = Field(None, max_length=4000)


class SessionSettingsResponse(StandardizedModel):
    model_config = ConfigDict(from_attributes=True)

    creator_id: str
    session_durations: List[int]
    default_duration: int
    buffer_time_minutes: int
    minimum_notice_hours: int
    max_advance_booking_days: Optional[int] = None
    auto_confirm: bool
    allow_free_session: bool
    price_per_duration: Optional[Dict[str, float]] = None
    timezone: str
    welcome_message: Optional[str] = None
    cancellation_policy: Optional[str] = None


class AvailableDayResponse(StandardizedModel):
    """Bookable start times ("HH:MM", creator-local) for one date."""

    model_config = ConfigDict(from_attributes=True)

    date: DateType
    slots: List[str]
    timezone: str
