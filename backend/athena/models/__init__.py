"""
Database models for the Athena session engine.
"""

from .availability import CreatorAvailability, CreatorSessionSettings, DateOverride, DayOfWeek
from .session import (
    ACTIVE_STATUSES,
    TERMINAL_STATUSES,
    CoachingSession,
    ParticipantRole,
    SessionStatus,
    VideoProvider,
)

__all__ = [
    "ACTIVE_STATUSES",
    "TERMINAL_STATUSES",
    "CoachingSession",
    "CreatorAvailability",
    "CreatorSessionSettings",
    "DateOverride",
    "DayOfWeek",
    "ParticipantRole",
    "SessionStatus",
    "VideoProvider",
]
