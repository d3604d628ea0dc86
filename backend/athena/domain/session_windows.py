"""Half-open session window helpers shared by the checker and repository."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Optional


@dataclass(frozen=True)
class SessionWindow:
    """The interval [start, end) a session occupies."""

    start: datetime
    end: datetime

    @classmethod
    def from_duration(cls, start: datetime, duration_minutes: int) -> "SessionWindow":
        return cls(start=start, end=window_end(start, duration_minutes))

    def overlaps(self, other: "SessionWindow") -> bool:
        return windows_overlap(self.start, self.end, other.start, other.end)


def window_end(start: datetime, duration_minutes: int) -> datetime:
    return start + timedelta(minutes=int(duration_minutes))


def windows_overlap(
    start_a: datetime, end_a: datetime, start_b: datetime, end_b: datetime
) -> bool:
    """Standard half-open overlap: touching endpoints do not overlap."""
    return start_a < end_b and start_b < end_a


def whole_minutes(value: Any) -> Optional[int]:
    """``value`` as an int when it is a whole number of minutes, else None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, (float, Decimal)):
        try:
            if value == int(value):
                return int(value)
        except (OverflowError, ValueError):
            return None
    return None
