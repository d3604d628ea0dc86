"""Tests for slot generation, booking rules and creator-local time conversion."""

from datetime import date, datetime, time, timedelta, timezone

import pytest

from athena.domain.availability import (
    BookingRules,
    day_of_week_index,
    format_hhmm,
    generate_slot_times,
    local_day_bounds,
    local_to_utc,
)


@pytest.mark.unit
class TestGenerateSlotTimes:
    def test_back_to_back_without_buffer(self) -> None:
        assert generate_slot_times(time(9), time(11), 30) == [
            time(9, 0),
            time(9, 30),
            time(10, 0),
            time(10, 30),
        ]

    def test_buffer_spaces_slots(self) -> None:
        assert generate_slot_times(time(9), time(12), 60, 15) == [time(9, 0), time(10, 15)]

    def test_whole_session_must_fit(self) -> None:
        assert generate_slot_times(time(9), time(10), 60) == [time(9, 0)]
        assert generate_slot_times(time(9), time(9, 30), 60) == []

    def test_non_positive_duration_yields_nothing(self) -> None:
        assert generate_slot_times(time(9), time(17), 0) == []


@pytest.mark.unit
class TestDayIndex:
    @pytest.mark.parametrize(
        "day, expected",
        [
            (date(2030, 6, 2), 0),  # Sunday
            (date(2030, 6, 3), 1),  # Monday
            (date(2030, 6, 1), 6),  # Saturday
        ],
    )
    def test_sunday_based(self, day, expected) -> None:
        assert day_of_week_index(day) == expected


@pytest.mark.unit
class TestLocalTime:
    def test_utc_passthrough(self) -> None:
        assert local_to_utc(date(2030, 6, 2), time(9), "UTC") == datetime(
            2030, 6, 2, 9, tzinfo=timezone.utc
        )

    @pytest.mark.parametrize(
        "tz_name, expected_hour",
        [("America/New_York", 13), ("Europe/Berlin", 7), ("Asia/Kolkata", 3)],
    )
    def test_summer_offsets(self, tz_name, expected_hour) -> None:
        converted = local_to_utc(date(2030, 6, 2), time(9), tz_name)
        expected = datetime(2030, 6, 2, expected_hour, tzinfo=timezone.utc)
        if tz_name == "Asia/Kolkata":
            expected += timedelta(minutes=30)
        assert converted == expected

    def test_winter_offset(self) -> None:
        assert local_to_utc(date(2030, 1, 6), time(9), "America/New_York") == datetime(
            2030, 1, 6, 14, tzinfo=timezone.utc
        )

    def test_day_bounds_span_local_midnights(self) -> None:
        start, end = local_day_bounds(date(2030, 6, 2), date(2030, 6, 3), "America/New_York")
        assert start == datetime(2030, 6, 2, 4, tzinfo=timezone.utc)
        assert end == datetime(2030, 6, 4, 4, tzinfo=timezone.utc)

    def test_format_hhmm(self) -> None:
        assert format_hhmm(time(9, 5)) == "09:05"


@pytest.mark.unit
class TestBookingRules:
    NOW = datetime(2030, 6, 1, 9, tzinfo=timezone.utc)

    def test_defaults_impose_nothing(self) -> None:
        rules = BookingRules()
        assert rules.buffer == timedelta(0)
        assert rules.earliest_start(self.NOW) == self.NOW
        assert rules.latest_start(self.NOW) is None

    def test_notice_and_advance_window(self) -> None:
        rules = BookingRules(minimum_notice_hours=24, max_advance_booking_days=7)
        assert rules.earliest_start(self.NOW) == self.NOW + timedelta(hours=24)
        assert rules.latest_start(self.NOW) == self.NOW + timedelta(days=7)
