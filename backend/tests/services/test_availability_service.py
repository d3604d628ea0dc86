"""
Tests for AvailabilityService.

Covers weekly ranges, date overrides, session settings and the available
slot computation with buffer, notice, advance window and timezone rules.
NOW is Saturday 2030-06-01 09:00 UTC; DAY (Sunday 2030-06-02) is day index 0.
"""

from datetime import date, time

import pytest

from athena.core.exceptions import SessionConflictException, ValidationException
from athena.domain.availability import AvailableDay
from athena.models.session import SessionStatus
from athena.schemas.availability import DateOverrideInput, SessionSettingsUpdate, WeeklyRangeInput
from tests.helpers.scenario import at

SUNDAY = date(2030, 6, 2)
MONDAY = date(2030, 6, 3)
SATURDAY = date(2030, 6, 1)


def _weekly(day: int, start: time, end: time, is_active: bool = True) -> WeeklyRangeInput:
    return WeeklyRangeInput(day_of_week=day, start_time=start, end_time=end, is_active=is_active)


@pytest.fixture
def sunday_morning(availability_service):
    """C1 takes bookings Sundays 09:00-12:00."""
    return availability_service.set_weekly_availability("C1", [_weekly(0, time(9), time(12))])


def _slots(days):
    return {day.date: day.slots for day in days}


class TestWeeklyAvailability:
    def test_set_and_get(self, availability_service):
        availability_service.set_weekly_availability(
            "C1", [_weekly(1, time(14), time(16)), _weekly(1, time(9), time(12))]
        )
        rows = availability_service.get_weekly_availability("C1")
        assert [(r.day_of_week, r.start_time, r.end_time) for r in rows] == [
            (1, time(9), time(12)),
            (1, time(14), time(16)),
        ]

    def test_overlapping_ranges_rejected(self, availability_service):
        with pytest.raises(ValidationException) as exc_info:
            availability_service.set_weekly_availability(
                "C1", [_weekly(2, time(9), time(12)), _weekly(2, time(11), time(13))]
            )
        assert exc_info.value.code == "OVERLAPPING_AVAILABILITY"
        assert availability_service.get_weekly_availability("C1") == []

    def test_touching_and_inactive_ranges_allowed(self, availability_service):
        rows = availability_service.set_weekly_availability(
            "C1",
            [
                _weekly(2, time(9), time(12)),
                _weekly(2, time(12), time(13)),
                _weekly(2, time(10), time(11), is_active=False),
            ],
        )
        assert len(rows) == 3

    def test_inverted_range_rejected(self, availability_service):
        inverted = WeeklyRangeInput.model_construct(
            day_of_week=1, start_time=time(12), end_time=time(9), is_active=True
        )
        with pytest.raises(ValidationException) as exc_info:
            availability_service.set_weekly_availability("C1", [inverted])
        assert exc_info.value.code == "INVALID_TIME_RANGE"


class TestSessionSettings:
    def test_rules_default_without_creating_settings(self, availability_service, availability_repository):
        rules = availability_service.get_booking_rules("C1")
        assert (rules.buffer_minutes, rules.minimum_notice_hours) == (0, 0)
        assert rules.max_advance_booking_days is None
        assert rules.timezone == "UTC"
        assert availability_repository.find_settings("C1") is None

    def test_get_settings_creates_defaults_once(self, availability_service):
        first = availability_service.get_settings("C1")
        second = availability_service.get_settings("C1")
        assert first.id == second.id
        assert first.session_durations == [30, 60]
        assert first.default_duration == 60
        assert first.auto_confirm is False

    def test_partial_update(self, availability_service):
        updated = availability_service.update_settings(
            "C1",
            SessionSettingsUpdate(
                session_durations=[90, 30, 30],
                default_duration=30,
                buffer_time_minutes=10,
                timezone="Europe/Berlin",
            ),
        )
        assert updated.session_durations == [30, 90]
        assert updated.default_duration == 30
        assert updated.booking_rules().buffer_minutes == 10
        assert updated.timezone == "Europe/Berlin"
        assert updated.minimum_notice_hours == 0

    @pytest.mark.parametrize(
        "changes, code",
        [
            ({"session_durations": [10, 60]}, "INVALID_SESSION_DURATIONS"),
            ({"session_durations": []}, "INVALID_SESSION_DURATIONS"),
            ({"timezone": "Mars/Olympus"}, "INVALID_TIMEZONE"),
            ({"default_duration": 45}, "INVALID_DEFAULT_DURATION"),
        ],
    )
    def test_invalid_updates(self, availability_service, changes, code):
        with pytest.raises(ValidationException) as exc_info:
            availability_service.update_settings("C1", SessionSettingsUpdate(**changes))
        assert exc_info.value.code == code


class TestDateOverrides:
    def test_set_and_get(self, availability_service):
        availability_service.set_date_overrides(
            "C1",
            [
                DateOverrideInput(date=MONDAY, is_available=False),
                DateOverrideInput(date=SUNDAY, start_time=time(13), end_time=time(15)),
            ],
        )
        overrides = availability_service.get_date_overrides("C1")
        assert [(o.date, o.is_available) for o in overrides] == [(SUNDAY, True), (MONDAY, False)]

    def test_half_open_range_rejected(self, availability_service):
        partial = DateOverrideInput.model_construct(
            date=SUNDAY, start_time=time(13), end_time=None, is_available=True
        )
        with pytest.raises(ValidationException) as exc_info:
            availability_service.set_date_overrides("C1", [partial])
        assert exc_info.value.code == "INVALID_TIME_RANGE"


class TestAvailableSlots:
    def test_weekly_range_split_into_slots(self, availability_service, sunday_morning):
        days = availability_service.get_available_slots("C1", SUNDAY, SUNDAY, 60)
        assert days == [AvailableDay(date=SUNDAY, slots=["09:00", "10:00", "11:00"], timezone="UTC")]

    def test_days_without_slots_are_omitted(self, availability_service, sunday_morning):
        days = availability_service.get_available_slots("C1", SATURDAY, MONDAY, 60)
        assert [d.date for d in days] == [SUNDAY]

    def test_past_and_current_slots_skipped(self, availability_service):
        availability_service.set_weekly_availability("C1", [_weekly(6, time(8), time(11))])
        days = availability_service.get_available_slots("C1", SATURDAY, SATURDAY, 60)
        assert _slots(days) == {SATURDAY: ["10:00"]}

    def test_default_duration_from_settings(self, availability_service, sunday_morning):
        availability_service.update_settings("C1", SessionSettingsUpdate(default_duration=30))
        days = availability_service.get_available_slots("C1", SUNDAY, SUNDAY)
        assert len(days[0].slots) == 6

    def test_confirmed_sessions_block_pending_do_not(
        self, availability_service, sunday_morning, make_session
    ):
        make_session(creator_id="C1", scheduled_at=at(10))
        make_session(creator_id="C1", scheduled_at=at(9), status=SessionStatus.PENDING)
        make_session(creator_id="C1", scheduled_at=at(11), status=SessionStatus.CANCELLED)

        days = availability_service.get_available_slots("C1", SUNDAY, SUNDAY, 60)
        assert _slots(days) == {SUNDAY: ["09:00", "11:00"]}

    def test_buffer_spaces_slots_and_clears_sessions(
        self, availability_service, make_session
    ):
        availability_service.set_weekly_availability("C1", [_weekly(0, time(9), time(14))])
        availability_service.update_settings("C1", SessionSettingsUpdate(buffer_time_minutes=15))
        make_session(creator_id="C1", scheduled_at=at(10))

        days = availability_service.get_available_slots("C1", SUNDAY, SUNDAY, 60)
        assert _slots(days) == {SUNDAY: ["11:30", "12:45"]}

    def test_minimum_notice(self, availability_service, sunday_morning):
        availability_service.update_settings("C1", SessionSettingsUpdate(minimum_notice_hours=26))
        days = availability_service.get_available_slots("C1", SUNDAY, SUNDAY, 60)
        assert _slots(days) == {SUNDAY: ["11:00"]}

    def test_max_advance_window(self, availability_service):
        availability_service.set_weekly_availability(
            "C1", [_weekly(0, time(9), time(12)), _weekly(1, time(9), time(12))]
        )
        availability_service.update_settings("C1", SessionSettingsUpdate(max_advance_booking_days=1))
        days = availability_service.get_available_slots("C1", SUNDAY, MONDAY, 60)
        assert _slots(days) == {SUNDAY: ["09:00"]}

    def test_blocked_override_removes_the_day(self, availability_service, sunday_morning):
        availability_service.set_date_overrides(
            "C1", [DateOverrideInput(date=SUNDAY, is_available=False)]
        )
        assert availability_service.get_available_slots("C1", SUNDAY, SUNDAY, 60) == []

    def test_override_range_replaces_weekly(self, availability_service, sunday_morning):
        availability_service.set_date_overrides(
            "C1", [DateOverrideInput(date=SUNDAY, start_time=time(13), end_time=time(15))]
        )
        days = availability_service.get_available_slots("C1", SUNDAY, SUNDAY, 60)
        assert _slots(days) == {SUNDAY: ["13:00", "14:00"]}

    def test_override_without_range_keeps_weekly(self, availability_service, sunday_morning):
        availability_service.set_date_overrides("C1", [DateOverrideInput(date=SUNDAY)])
        days = availability_service.get_available_slots("C1", SUNDAY, SUNDAY, 60)
        assert _slots(days) == {SUNDAY: ["09:00", "10:00", "11:00"]}

    def test_override_opens_a_day_without_weekly_ranges(self, availability_service):
        availability_service.set_date_overrides(
            "C1", [DateOverrideInput(date=MONDAY, start_time=time(9), end_time=time(10))]
        )
        days = availability_service.get_available_slots("C1", MONDAY, MONDAY, 60)
        assert _slots(days) == {MONDAY: ["09:00"]}

    def test_creator_timezone(self, availability_service, make_session):
        availability_service.set_weekly_availability("C1", [_weekly(0, time(9), time(11))])
        availability_service.update_settings(
            "C1", SessionSettingsUpdate(timezone="America/New_York")
        )
        # 09:00 New York on June 2 is 13:00 UTC.
        make_session(creator_id="C1", scheduled_at=at(13))

        days = availability_service.get_available_slots("C1", SUNDAY, SUNDAY, 60)
        assert days == [
            AvailableDay(date=SUNDAY, slots=["10:00"], timezone="America/New_York")
        ]

    def test_every_listed_slot_can_be_booked_and_confirmed(
        self, availability_service, booking_service, make_session
    ):
        availability_service.set_weekly_availability("C1", [_weekly(0, time(8), time(17))])
        availability_service.update_settings(
            "C1", SessionSettingsUpdate(buffer_time_minutes=10, minimum_notice_hours=24)
        )
        make_session(creator_id="C1", scheduled_at=at(12))

        days = availability_service.get_available_slots("C1", SUNDAY, SUNDAY, 60)
        assert days
        for slot in days[0].slots:
            hour, minute = (int(part) for part in slot.split(":"))
            session = booking_service.book("U2", "C1", at(hour, minute), 60)
            booking_service.update_status(session.id, "C1", "confirmed")

    def test_booked_slot_disappears_after_confirmation(
        self, availability_service, booking_service, sunday_morning
    ):
        session = booking_service.book("U1", "C1", at(10), 60)
        assert "10:00" in availability_service.get_available_slots("C1", SUNDAY, SUNDAY, 60)[0].slots

        booking_service.update_status(session.id, "C1", "confirmed")
        assert _slots(availability_service.get_available_slots("C1", SUNDAY, SUNDAY, 60)) == {
            SUNDAY: ["09:00", "11:00"]
        }
        with pytest.raises(SessionConflictException):
            booking_service.book("U2", "C1", at(10), 60)

    @pytest.mark.parametrize(
        "start, end, duration, code",
        [
            (SUNDAY, SATURDAY, 60, "INVALID_WINDOW"),
            (SUNDAY, date(2030, 9, 1), 60, "RANGE_TOO_LARGE"),
            (SUNDAY, SUNDAY, 10, "INVALID_DURATION"),
            (SUNDAY, SUNDAY, 15.5, "INVALID_DURATION"),
        ],
    )
    def test_invalid_queries(self, availability_service, start, end, duration, code):
        with pytest.raises(ValidationException) as exc_info:
            availability_service.get_available_slots("C1", start, end, duration)
        assert exc_info.value.code == code
