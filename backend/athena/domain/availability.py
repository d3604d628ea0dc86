"""
Availability arithmetic: booking rules, weekly slot generation and
creator-local time conversion.

Weekly ranges and generated slots are wall-clock times in the creator's
timezone. Every comparison with sessions happens on aware UTC instants.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import List, Optional

import pytz


@dataclass(frozen=True)
class BookingRules:
    """Per-creator constraints applied on top of the conflict rule."""

    buffer_minutes: int = 0
    minimum_notice_hours: int = 0
    max_advance_booking_days: Optional[int] = None
    timezone: str = "UTC"

    @property
    def buffer(self) -> timedelta:
        return timedelta(minutes=self.buffer_minutes)

    def earliest_start(self, now: datetime) -> datetime:
        return now + timedelta(hours=self.minimum_notice_hours)

    def latest_start(self, now: datetime) -> Optional[datetime]:
        if self.max_advance_booking_days is None:
            return None
        return now + timedelta(days=self.max_advance_booking_days)


@dataclass(frozen=True)
class AvailableDay:
    """Bookable start times for one creator-local date."""

    date: date
    slots: List[str]
    timezone: str


def day_of_week_index(day: date) -> int:
    """Sunday-based day index (Sunday=0 ... Saturday=6)."""
    return (day.weekday() + 1) % 7


def minutes_of_day(value: time) -> int:
    return value.hour * 60 + value.minute


def format_hhmm(value: time) -> str:
    return f"{value.hour:02d}:{value.minute:02d}"


def generate_slot_times(
    range_start: time, range_end: time, duration_minutes: int, buffer_minutes: int = 0
) -> List[time]:
    """
    Start times inside [range_start, range_end) whose whole session fits,
    spaced ``duration + buffer`` apart.
    """
    step = int(duration_minutes) + int(buffer_minutes)
    if duration_minutes <= 0 or step <= 0:
        return []

    starts: List[time] = []
    current = minutes_of_day(range_start)
    last = minutes_of_day(range_end)
    while current + duration_minutes <= last:
        starts.append(time(current // 60, current % 60))
        current += step
    return starts


def local_to_utc(day: date, at: time, timezone_name: str) -> datetime:
    """Interpret ``day`` + ``at`` as wall-clock time in ``timezone_name``."""
    tz = pytz.timezone(timezone_name)
    local = tz.normalize(tz.localize(datetime.combine(day, at)))
    return local.astimezone(pytz.utc)


def local_day_bounds(start_day: date, end_day: date, timezone_name: str) -> tuple[datetime, datetime]:
    """UTC instants spanning local midnight of ``start_day`` to midnight after ``end_day``."""
    return (
        local_to_utc(start_day, time(0, 0), timezone_name),
        local_to_utc(end_day + timedelta(days=1), time(0, 0), timezone_name),
    )
