# backend/athena/models/session.py
"""
Session model for the Athena marketplace.

A session is a scheduled one-to-one video meeting between a consumer and a
creator. Participants are stored as opaque identifiers only; profile data
lives in the identity store and is resolved on demand by callers.

The window a session occupies is [scheduled_at, scheduled_at + duration).
The end instant is always derived and never stored.
"""

from datetime import datetime, timedelta
from enum import Enum
import logging
from typing import Any, Optional

from sqlalchemy import CheckConstraint, Column, Index, Integer, Numeric, String, Text
import ulid

from ..database import Base
from .types import UTCDateTime

logger = logging.getLogger(__name__)


class SessionStatus(str, Enum):
    """Session lifecycle statuses."""

    PENDING = "pending"  # Requested, non-binding
    CONFIRMED = "confirmed"  # Accepted, room provisioned
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


ACTIVE_STATUSES = (SessionStatus.CONFIRMED, SessionStatus.IN_PROGRESS)
TERMINAL_STATUSES = (SessionStatus.COMPLETED, SessionStatus.CANCELLED)


class VideoProvider(str, Enum):
    """Supported video meeting providers."""

    JITSI = "jitsi"
    DAILY = "daily"


class ParticipantRole(str, Enum):
    """Which side of a session a user id is matched against."""

    CONSUMER = "consumer"
    CREATOR = "creator"


class CoachingSession(Base):
    """
    Persisted session record.

    Mutated only through the lifecycle service; never deleted by the core.
    """

    __tablename__ = "sessions"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))

    # Participants (opaque identity references)
    consumer_id = Column(String(64), nullable=False)
    creator_id = Column(String(64), nullable=False)

    # Scheduling
    scheduled_at = Column(UTCDateTime(), nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    status = Column(String(20), nullable=False, default=SessionStatus.PENDING.value)

    # Video room (set once, on entry into confirmed)
    video_provider = Column(String(20), nullable=True)
    video_room_id = Column(String(255), nullable=True)
    video_room_url = Column(String(500), nullable=True)

    # Commercial pass-through
    price = Column(Numeric(10, 2), nullable=True)
    currency = Column(String(10), nullable=True)

    # Narrative
    student_notes = Column(Text, nullable=True)
    creator_notes = Column(Text, nullable=True)
    cancellation_reason = Column(Text, nullable=True)
    cancelled_by_id = Column(String(64), nullable=True)

    # Timestamps
    created_at = Column(UTCDateTime(), nullable=False)
    updated_at = Column(UTCDateTime(), nullable=False)
    confirmed_at = Column(UTCDateTime(), nullable=True)
    started_at = Column(UTCDateTime(), nullable=True)
    ended_at = Column(UTCDateTime(), nullable=True)
    cancelled_at = Column(UTCDateTime(), nullable=True)

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'in_progress', 'completed', 'cancelled')",
            name="ck_sessions_status",
        ),
        CheckConstraint("duration_minutes > 0", name="ck_sessions_duration_positive"),
        Index("ix_sessions_consumer_status", "consumer_id", "status"),
        Index("ix_sessions_creator_status", "creator_id", "status"),
        Index("ix_sessions_scheduled_at", "scheduled_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<CoachingSession {self.id}: consumer={self.consumer_id}, "
            f"creator={self.creator_id}, at={self.scheduled_at}, "
            f"minutes={self.duration_minutes}, status={self.status}>"
        )

    @property
    def ends_at(self) -> datetime:
        return self.scheduled_at + timedelta(minutes=int(self.duration_minutes))

    @property
    def status_enum(self) -> SessionStatus:
        return SessionStatus(self.status)

    @property
    def is_active(self) -> bool:
        return self.status_enum in ACTIVE_STATUSES

    @property
    def has_room(self) -> bool:
        return bool(self.video_room_id)

    def is_participant(self, user_id: Optional[str]) -> bool:
        return user_id is not None and user_id in (self.consumer_id, self.creator_id)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logs and API responses."""
        return {
            "id": self.id,
            "consumer_id": self.consumer_id,
            "creator_id": self.creator_id,
            "scheduled_at": self.scheduled_at.isoformat() if self.scheduled_at else None,
            "ends_at": self.ends_at.isoformat() if self.scheduled_at else None,
            "duration_minutes": self.duration_minutes,
            "status": self.status,
            "video_provider": self.video_provider,
            "video_room_id": self.video_room_id,
            "video_room_url": self.video_room_url,
            "price": float(self.price) if self.price is not None else None,
            "currency": self.currency,
            "student_notes": self.student_notes,
            "creator_notes": self.creator_notes,
            "cancellation_reason": self.cancellation_reason,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "ended_at": self.ended_at.isoformat() if self.ended_at else None,
        }
