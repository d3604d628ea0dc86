"""Tests for AvailabilityRepository against SQLite."""

from datetime import date, time

import pytest

from athena.core.exceptions import RepositoryException
from tests.helpers.scenario import NOW


def _range(day: int, start: time, end: time, is_active: bool = True) -> dict:
    return {"day_of_week": day, "start_time": start, "end_time": end, "is_active": is_active}


class TestWeeklyRanges:
    def test_replace_orders_by_day_then_start(self, availability_repository, db):
        availability_repository.replace_weekly(
            "C1",
            [
                _range(3, time(13), time(17)),
                _range(1, time(14), time(16)),
                _range(1, time(9), time(12)),
            ],
            now=NOW,
        )
        db.commit()

        rows = availability_repository.find_weekly("C1")
        assert [(r.day_of_week, r.start_time) for r in rows] == [
            (1, time(9)),
            (1, time(14)),
            (3, time(13)),
        ]
        assert all(len(r.id) == 26 for r in rows)

    def test_replace_drops_previous_ranges(self, availability_repository, db):
        availability_repository.replace_weekly("C1", [_range(1, time(9), time(12))], now=NOW)
        availability_repository.replace_weekly("C1", [_range(5, time(10), time(11))], now=NOW)
        db.commit()

        assert [r.day_of_week for r in availability_repository.find_weekly("C1")] == [5]

    def test_other_creators_untouched(self, availability_repository, db):
        availability_repository.replace_weekly("C1", [_range(1, time(9), time(12))], now=NOW)
        availability_repository.replace_weekly("C2", [], now=NOW)
        db.commit()

        assert len(availability_repository.find_weekly("C1")) == 1
        assert availability_repository.find_weekly("C2") == []

    def test_active_only(self, availability_repository, db):
        availability_repository.replace_weekly(
            "C1",
            [_range(1, time(9), time(12)), _range(2, time(9), time(12), is_active=False)],
            now=NOW,
        )
        db.commit()

        assert [r.day_of_week for r in availability_repository.find_weekly("C1", active_only=True)] == [1]

    def test_inverted_range_violates_constraint(self, availability_repository, db):
        with pytest.raises(RepositoryException):
            availability_repository.replace_weekly("C1", [_range(1, time(12), time(9))], now=NOW)
        db.rollback()


class TestDateOverrides:
    def test_upsert_replaces_same_date(self, availability_repository, db):
        availability_repository.upsert_date_override(
            "C1", date(2030, 6, 3), start_time=None, end_time=None, is_available=False, now=NOW
        )
        availability_repository.upsert_date_override(
            "C1",
            date(2030, 6, 3),
            start_time=time(10),
            end_time=time(12),
            is_available=True,
            now=NOW,
        )
        db.commit()

        overrides = availability_repository.find_date_overrides("C1")
        assert len(overrides) == 1
        assert overrides[0].is_available is True
        assert overrides[0].has_time_range
        assert (overrides[0].start_time, overrides[0].end_time) == (time(10), time(12))

    def test_date_range_filter(self, availability_repository, db):
        for day in (1, 5, 9):
            availability_repository.upsert_date_override(
                "C1", date(2030, 6, day), start_time=None, end_time=None, is_available=False, now=NOW
            )
        db.commit()

        found = availability_repository.find_date_overrides("C1", date(2030, 6, 2), date(2030, 6, 9))
        assert [o.date for o in found] == [date(2030, 6, 5), date(2030, 6, 9)]


class TestSessionSettings:
    def _fields(self, **overrides):
        fields = {
            "session_durations": [30, 60],
            "default_duration": 60,
            "created_at": NOW,
            "updated_at": NOW,
        }
        fields.update(overrides)
        return fields

    def test_create_find_update(self, availability_repository, db):
        assert availability_repository.find_settings("C1") is None

        row = availability_repository.create_settings("C1", **self._fields(buffer_time_minutes=10))
        db.commit()

        loaded = availability_repository.find_settings("C1")
        assert loaded.id == row.id
        assert loaded.session_durations == [30, 60]
        assert loaded.booking_rules().buffer_minutes == 10
        assert loaded.booking_rules().timezone == "UTC"

        availability_repository.update_settings(loaded, timezone="Europe/Berlin", updated_at=NOW)
        db.commit()
        assert availability_repository.find_settings("C1").timezone == "Europe/Berlin"

    def test_one_row_per_creator(self, availability_repository, db):
        availability_repository.create_settings("C1", **self._fields())
        db.commit()

        with pytest.raises(RepositoryException):
            availability_repository.create_settings("C1", **self._fields())
        db.rollback()
