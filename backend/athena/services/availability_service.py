# backend/athena/services/availability_service.py
"""
Availability Service for the Athena session engine.

Manages a creator's weekly ranges, date overrides and session settings,
and turns them into bookable start times:

- Weekly ranges repeat every week on a Sunday-based day index
- A date override blocks a date or replaces its ranges
- Session settings carry the booking rules (buffer between sessions,
  minimum notice, maximum advance window, timezone)

Every slot returned by ``get_available_slots`` passes the same rules
``SessionBookingService.book`` applies, so a listed slot can be booked
unless someone else takes it first.
"""

from collections import defaultdict
from datetime import date, time, timedelta
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

import pytz
from sqlalchemy.orm import Session

from ..core.clock import Clock, system_clock
from ..core.config import settings
from ..core.exceptions import RepositoryException, ServiceException, ValidationException
from ..domain.availability import (
    AvailableDay,
    BookingRules,
    day_of_week_index,
    format_hhmm,
    generate_slot_times,
    local_day_bounds,
    local_to_utc,
)
from ..domain.session_windows import whole_minutes, windows_overlap
from ..models.availability import CreatorAvailability, CreatorSessionSettings, DateOverride
from ..repositories import RepositoryFactory
from ..repositories.availability_repository import AvailabilityRepository
from ..repositories.session_repository import SessionRepository
from ..schemas.availability import DateOverrideInput, SessionSettingsUpdate, WeeklyRangeInput
from .base import BaseService

logger = logging.getLogger(__name__)

TimeRange = Tuple[time, time]

OFFERED_DURATION_MIN = 15
OFFERED_DURATION_MAX = 180


class AvailabilityService(BaseService):
    """
    Service layer for creator availability and session settings.

    Reads never create rows; ``get_settings`` is the only read that may
    persist (the creator's default settings, on first access).
    """

    def __init__(
        self,
        db: Session,
        repository: Optional[AvailabilityRepository] = None,
        session_repository: Optional[SessionRepository] = None,
        clock: Clock = system_clock,
    ):
        """
        Initialize availability service.

        Args:
            db: Database session
            repository: Optional AvailabilityRepository instance
            session_repository: Optional SessionRepository instance
            clock: Time source for notice and advance-window checks
        """
        super().__init__(db)
        self.repository = repository or RepositoryFactory.create_availability_repository(db)
        self.session_repository = (
            session_repository or RepositoryFactory.create_session_repository(db)
        )
        self.clock = clock

    # Booking rules

    def get_booking_rules(self, creator_id: str) -> BookingRules:
        """Rules from the creator's saved settings, or the configured defaults."""
        row = self.repository.find_settings(creator_id)
        if row is not None:
            return row.booking_rules()
        return BookingRules(
            buffer_minutes=settings.default_buffer_minutes,
            minimum_notice_hours=settings.default_minimum_notice_hours,
            max_advance_booking_days=settings.default_max_advance_booking_days,
            timezone=settings.default_creator_timezone,
        )

    # Weekly ranges

    @BaseService.measure_operation("set_weekly_availability")
    def set_weekly_availability(
        self, creator_id: str, ranges: Sequence[WeeklyRangeInput]
    ) -> List[CreatorAvailability]:
        """
        Replace the creator's weekly ranges.

        Raises:
            ValidationException: A range ends before it starts, or two
                active ranges on the same day overlap
        """
        by_day: Dict[int, List[TimeRange]] = defaultdict(list)
        for item in ranges:
            if item.end_time <= item.start_time:
                raise ValidationException(
                    f"Invalid time range: {item.start_time} must be before {item.end_time}",
                    code="INVALID_TIME_RANGE",
                    details={"day_of_week": item.day_of_week},
                )
            if item.is_active:
                by_day[item.day_of_week].append((item.start_time, item.end_time))

        for day_index, day_ranges in by_day.items():
            day_ranges.sort()
            for (_, previous_end), (next_start, _) in zip(day_ranges, day_ranges[1:]):
                if next_start < previous_end:
                    raise ValidationException(
                        "Weekly ranges on the same day must not overlap",
                        code="OVERLAPPING_AVAILABILITY",
                        details={"day_of_week": day_index},
                    )

        with self.transaction():
            rows = self.repository.replace_weekly(
                creator_id,
                [
                    {
                        "day_of_week": item.day_of_week,
                        "start_time": item.start_time,
                        "end_time": item.end_time,
                        "is_active": item.is_active,
                    }
                    for item in ranges
                ],
                now=self.clock.now(),
            )

        self.log_operation("weekly_availability_set", creator_id=creator_id, ranges=len(rows))
        return rows

    def get_weekly_availability(self, creator_id: str) -> List[CreatorAvailability]:
        return self.repository.find_weekly(creator_id)

    # Date overrides

    @BaseService.measure_operation("set_date_overrides")
    def set_date_overrides(
        self, creator_id: str, overrides: Sequence[DateOverrideInput]
    ) -> List[DateOverride]:
        """Create or replace one override per date."""
        for item in overrides:
            if (item.start_time is None) != (item.end_time is None) or (
                item.start_time is not None and item.end_time <= item.start_time
            ):
                raise ValidationException(
                    "Override needs both start and end time, with end after start",
                    code="INVALID_TIME_RANGE",
                    details={"date": item.date.isoformat()},
                )

        now = self.clock.now()
        with self.transaction():
            saved = [
                self.repository.upsert_date_override(
                    creator_id,
                    item.date,
                    start_time=item.start_time,
                    end_time=item.end_time,
                    is_available=item.is_available,
                    now=now,
                )
                for item in overrides
            ]

        self.log_operation("date_overrides_set", creator_id=creator_id, overrides=len(saved))
        return saved

    def get_date_overrides(self, creator_id: str) -> List[DateOverride]:
        return self.repository.find_date_overrides(creator_id)

    # Session settings

    def _default_settings_fields(self) -> Dict[str, Any]:
        now = self.clock.now()
        return {
            "session_durations": list(settings.default_session_durations),
            "default_duration": settings.default_session_duration_minutes,
            "buffer_time_minutes": settings.default_buffer_minutes,
            "minimum_notice_hours": settings.default_minimum_notice_hours,
            "max_advance_booking_days": settings.default_max_advance_booking_days,
            "timezone": settings.default_creator_timezone,
            "auto_confirm": False,
            "allow_free_session": False,
            "created_at": now,
            "updated_at": now,
        }

    @BaseService.measure_operation("get_session_settings")
    def get_settings(self, creator_id: str) -> CreatorSessionSettings:
        """The creator's settings, created with the defaults on first access."""
        row = self.repository.find_settings(creator_id)
        if row is not None:
            return row

        try:
            with self.transaction():
                row = self.repository.create_settings(
                    creator_id, **self._default_settings_fields()
                )
        except RepositoryException:
            # Created concurrently by another request
            row = self.repository.find_settings(creator_id)
            if row is None:
                raise ServiceException(f"Could not load session settings for {creator_id}")
        return row

    @BaseService.measure_operation("update_session_settings")
    def update_settings(
        self, creator_id: str, changes: SessionSettingsUpdate
    ) -> CreatorSessionSettings:
        """
        Apply a partial settings update.

        Raises:
            ValidationException: Offered durations outside 15-180 minutes,
                a default duration not offered, or an unknown timezone
        """
        updates = changes.model_dump(exclude_unset=True)

        durations = updates.get("session_durations")
        if durations is not None:
            if not durations or any(
                whole_minutes(d) is None or not OFFERED_DURATION_MIN <= d <= OFFERED_DURATION_MAX
                for d in durations
            ):
                raise ValidationException(
                    f"Session durations must be between {OFFERED_DURATION_MIN} "
                    f"and {OFFERED_DURATION_MAX} minutes",
                    code="INVALID_SESSION_DURATIONS",
                    details={"session_durations": durations},
                )
            updates["session_durations"] = sorted(set(int(d) for d in durations))

        timezone_name = updates.get("timezone")
        if timezone_name is not None and timezone_name not in pytz.all_timezones_set:
            raise ValidationException(
                f"Unknown timezone: {timezone_name}",
                code="INVALID_TIMEZONE",
                details={"timezone": timezone_name},
            )

        row = self.get_settings(creator_id)
        offered = updates.get("session_durations", row.session_durations)
        default_duration = updates.get("default_duration", row.default_duration)
        if default_duration not in offered:
            raise ValidationException(
                "Default duration must be one of the offered durations",
                code="INVALID_DEFAULT_DURATION",
                details={"default_duration": default_duration, "session_durations": offered},
            )

        with self.transaction():
            row = self.repository.update_settings(row, updated_at=self.clock.now(), **updates)

        self.log_operation(
            "session_settings_updated", creator_id=creator_id, fields=sorted(updates)
        )
        return row

    # Slots

    @staticmethod
    def _ranges_for_day(
        day: date,
        weekly: Dict[int, List[TimeRange]],
        override: Optional[DateOverride],
    ) -> List[TimeRange]:
        if override is not None:
            if not override.is_available:
                return []
            if override.has_time_range:
                return [(override.start_time, override.end_time)]
        return weekly.get(day_of_week_index(day), [])

    @BaseService.measure_operation("get_available_slots")
    def get_available_slots(
        self,
        creator_id: str,
        start_date: date,
        end_date: date,
        duration_minutes: Optional[int] = None,
    ) -> List[AvailableDay]:
        """
        Bookable start times for each creator-local date in [start_date, end_date].

        A slot is listed when it lies inside the day's ranges, respects the
        minimum notice and advance window, and keeps the buffer clear of
        every confirmed or in-progress session. Days without slots are
        omitted.

        Raises:
            ValidationException: Bad duration, inverted or oversized date range
        """
        rules = self.get_booking_rules(creator_id)
        if duration_minutes is None:
            row = self.repository.find_settings(creator_id)
            duration_minutes = (
                row.default_duration if row else settings.default_session_duration_minutes
            )

        minutes = whole_minutes(duration_minutes)
        if minutes is None or minutes < settings.min_session_duration_minutes:
            raise ValidationException(
                f"Duration must be a whole number of at least "
                f"{settings.min_session_duration_minutes} minutes",
                code="INVALID_DURATION",
                details={"duration_minutes": duration_minutes},
            )
        if end_date < start_date:
            raise ValidationException(
                "End date must not be before start date",
                code="INVALID_WINDOW",
                details={"start_date": start_date.isoformat(), "end_date": end_date.isoformat()},
            )
        if (end_date - start_date).days + 1 > settings.max_slot_search_days:
            raise ValidationException(
                f"Date range is limited to {settings.max_slot_search_days} days",
                code="RANGE_TOO_LARGE",
                details={"start_date": start_date.isoformat(), "end_date": end_date.isoformat()},
            )

        weekly: Dict[int, List[TimeRange]] = defaultdict(list)
        for item in self.repository.find_weekly(creator_id, active_only=True):
            weekly[item.day_of_week].append((item.start_time, item.end_time))
        overrides = {
            item.date: item
            for item in self.repository.find_date_overrides(creator_id, start_date, end_date)
        }

        range_start, range_end = local_day_bounds(start_date, end_date, rules.timezone)
        busy = [
            (session.scheduled_at - rules.buffer, session.ends_at + rules.buffer)
            for session in self.session_repository.find_active_overlapping(
                creator_id, range_start - rules.buffer, range_end + rules.buffer
            )
        ]

        now = self.clock.now()
        earliest = rules.earliest_start(now)
        latest = rules.latest_start(now)
        length = timedelta(minutes=minutes)

        result: List[AvailableDay] = []
        day = start_date
        while day <= end_date:
            starts = set()
            for range_from, range_to in self._ranges_for_day(day, weekly, overrides.get(day)):
                for slot_time in generate_slot_times(
                    range_from, range_to, minutes, rules.buffer_minutes
                ):
                    slot_start = local_to_utc(day, slot_time, rules.timezone)
                    if slot_start <= now or slot_start < earliest:
                        continue
                    if latest is not None and slot_start > latest:
                        continue
                    slot_end = slot_start + length
                    if any(windows_overlap(slot_start, slot_end, s, e) for s, e in busy):
                        continue
                    starts.add(slot_time)
            if starts:
                result.append(
                    AvailableDay(
                        date=day,
                        slots=[format_hhmm(t) for t in sorted(starts)],
                        timezone=rules.timezone,
                    )
                )
            day += timedelta(days=1)

        return result
