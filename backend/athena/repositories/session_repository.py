# backend/athena/repositories/session_repository.py
"""
Session Repository for the Athena session engine.

Implements all data access operations for session records, keeping every
query the lifecycle and conflict logic needs in one place.

Overlap lookups pre-filter in SQL on ``scheduled_at`` only: a session that
could overlap [start, end) must begin before ``end`` and no earlier than
``start`` minus the longest duration stored for that creator (read with a
``MAX`` aggregate, so no configured limit can hide a long session). The
exact half-open check on the derived end instant is then applied in Python;
the end is never persisted.
"""

from datetime import datetime, timedelta
import logging
from typing import Any, List, Optional

from sqlalchemy import and_, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..domain.session_windows import window_end, windows_overlap
from ..models.session import ACTIVE_STATUSES, CoachingSession, ParticipantRole, SessionStatus
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)

_ACTIVE_VALUES = [status.value for status in ACTIVE_STATUSES]


class SessionRepository(BaseRepository[CoachingSession]):
    """
    Repository for session data access.

    Does not commit; the owning service controls transaction boundaries.
    """

    def __init__(self, db: Session):
        super().__init__(db, CoachingSession)

    # Writes

    def insert(self, **fields: Any) -> CoachingSession:
        """Insert a new session row and return it with its generated id."""
        session = self.create(**fields)
        self.logger.debug(
            "Inserted session %s for creator %s", session.id, session.creator_id
        )
        return session

    def update_fields(
        self, session_id: str, *, updated_at: datetime, **partial: Any
    ) -> Optional[CoachingSession]:
        """
        Apply a partial update and bump ``updated_at``.

        Returns None when no row has the given id.
        """
        return self.update(session_id, updated_at=updated_at, **partial)

    # Reads

    def find_by_id(self, session_id: str) -> Optional[CoachingSession]:
        return self.get_by_id(session_id)

    def find_by_participant(
        self, user_id: str, role: ParticipantRole
    ) -> List[CoachingSession]:
        """All sessions where the user holds the given role, newest first."""
        column = (
            CoachingSession.consumer_id
            if ParticipantRole(role) == ParticipantRole.CONSUMER
            else CoachingSession.creator_id
        )
        query = (
            self._build_query()
            .filter(column == user_id)
            .order_by(CoachingSession.scheduled_at.desc())
        )
        return self._execute_query(query)

    def longest_duration_minutes(
        self, creator_id: str, statuses: Optional[List[str]] = None
    ) -> int:
        """Longest stored duration among the creator's sessions, 0 when there are none."""
        try:
            query = self.db.query(func.max(CoachingSession.duration_minutes)).filter(
                CoachingSession.creator_id == creator_id
            )
            if statuses:
                query = query.filter(CoachingSession.status.in_(statuses))
            longest = query.scalar()
        except SQLAlchemyError as e:
            self.logger.error(f"Error reading longest duration for {creator_id}: {str(e)}")
            raise RepositoryException(f"Failed to read longest duration: {str(e)}")
        return int(longest or 0)

    def find_active_overlapping(
        self,
        creator_id: str,
        start: datetime,
        end: datetime,
        exclude_session_id: Optional[str] = None,
    ) -> List[CoachingSession]:
        """
        Active (confirmed or in-progress) sessions of the creator whose
        window intersects [start, end).
        """
        return self._find_overlapping(
            creator_id, start, end, _ACTIVE_VALUES, exclude_session_id=exclude_session_id
        )

    def find_overlapping(
        self, creator_id: str, start: datetime, end: datetime
    ) -> List[CoachingSession]:
        """Sessions of the creator in any status whose window intersects [start, end)."""
        return self._find_overlapping(creator_id, start, end, None)

    def _find_overlapping(
        self,
        creator_id: str,
        start: datetime,
        end: datetime,
        statuses: Optional[List[str]],
        exclude_session_id: Optional[str] = None,
    ) -> List[CoachingSession]:
        lookback = timedelta(minutes=self.longest_duration_minutes(creator_id, statuses))
        try:
            query = self._build_query().filter(
                and_(
                    CoachingSession.creator_id == creator_id,
                    CoachingSession.scheduled_at < end,
                    CoachingSession.scheduled_at >= start - lookback,
                )
            )
            if statuses:
                query = query.filter(CoachingSession.status.in_(statuses))
            if exclude_session_id:
                query = query.filter(CoachingSession.id != exclude_session_id)
            candidates = query.order_by(CoachingSession.scheduled_at.asc()).all()
        except SQLAlchemyError as e:
            self.logger.error(f"Error finding overlapping sessions for {creator_id}: {str(e)}")
            raise RepositoryException(f"Failed to find overlapping sessions: {str(e)}")

        return [
            candidate
            for candidate in candidates
            if windows_overlap(
                candidate.scheduled_at,
                window_end(candidate.scheduled_at, candidate.duration_minutes),
                start,
                end,
            )
        ]

    def find_upcoming_for_consumer(
        self, consumer_id: str, now: datetime
    ) -> List[CoachingSession]:
        """Confirmed sessions of the consumer starting after ``now``, soonest first."""
        query = (
            self._build_query()
            .filter(
                CoachingSession.consumer_id == consumer_id,
                CoachingSession.status == SessionStatus.CONFIRMED.value,
                CoachingSession.scheduled_at > now,
            )
            .order_by(CoachingSession.scheduled_at.asc())
        )
        return self._execute_query(query)

    def find_confirmed_starting_between(
        self, window_start: datetime, window_stop: datetime
    ) -> List[CoachingSession]:
        """Confirmed sessions of any creator starting within [window_start, window_stop]."""
        query = (
            self._build_query()
            .filter(
                CoachingSession.status == SessionStatus.CONFIRMED.value,
                CoachingSession.scheduled_at >= window_start,
                CoachingSession.scheduled_at <= window_stop,
            )
            .order_by(CoachingSession.scheduled_at.asc())
        )
        return self._execute_query(query)
