# backend/athena/services/conflict_checker.py
"""
Conflict Checker Service for the Athena session engine.

Handles session conflict detection including:
- Checking if a proposed window overlaps an active session of the creator
- Listing a creator's sessions over a calendar range
- Finding the next free start time after a conflict

Windows are half-open [start, start + duration). Only confirmed and
in-progress sessions block a window; pending, completed and cancelled
sessions never do.
"""

from datetime import datetime, timedelta
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..core.clock import ensure_utc
from ..core.exceptions import ValidationException
from ..domain.session_windows import SessionWindow, whole_minutes
from ..models.session import CoachingSession
from ..repositories import RepositoryFactory
from ..repositories.session_repository import SessionRepository
from .base import BaseService

logger = logging.getLogger(__name__)


class ConflictChecker(BaseService):
    """
    Service for checking creator double-booking.

    Read-only: never writes to the session store.
    """

    def __init__(self, db: Session, repository: Optional[SessionRepository] = None):
        """
        Initialize conflict checker service.

        Args:
            db: Database session
            repository: Optional SessionRepository instance
        """
        super().__init__(db)
        self.repository = repository or RepositoryFactory.create_session_repository(db)

    def _proposed_window(self, proposed_start: datetime, duration_minutes: int) -> SessionWindow:
        minutes = whole_minutes(duration_minutes)
        if minutes is None or minutes <= 0:
            raise ValidationException(
                "Duration must be a positive whole number of minutes",
                code="INVALID_DURATION",
                details={"duration_minutes": duration_minutes},
            )
        return SessionWindow.from_duration(ensure_utc(proposed_start), minutes)

    def _blocking(
        self,
        creator_id: str,
        window: SessionWindow,
        buffer_minutes: int,
        exclude_session_id: Optional[str],
    ) -> List[CoachingSession]:
        # A buffer widens the proposed window on both sides.
        buffer = timedelta(minutes=max(int(buffer_minutes or 0), 0))
        return self.repository.find_active_overlapping(
            creator_id,
            window.start - buffer,
            window.end + buffer,
            exclude_session_id=exclude_session_id,
        )

    @BaseService.measure_operation("find_session_conflicts")
    def find_conflicts(
        self,
        creator_id: str,
        proposed_start: datetime,
        duration_minutes: int,
        exclude_session_id: Optional[str] = None,
        buffer_minutes: int = 0,
    ) -> List[Dict[str, Any]]:
        """
        Find active sessions that overlap a proposed window.

        Args:
            creator_id: The creator to check
            proposed_start: Start of the proposed window
            duration_minutes: Length of the proposed window
            exclude_session_id: Optional session ID to exclude from check
            buffer_minutes: Required gap between the window and any active session

        Returns:
            List of conflicts with session details
        """
        window = self._proposed_window(proposed_start, duration_minutes)
        overlapping = self._blocking(creator_id, window, buffer_minutes, exclude_session_id)

        conflicts = [
            {
                "session_id": session.id,
                "scheduled_at": session.scheduled_at.isoformat(),
                "ends_at": session.ends_at.isoformat(),
                "status": session.status,
            }
            for session in overlapping
        ]

        if conflicts:
            self.logger.warning(
                f"Found {len(conflicts)} session conflicts for creator {creator_id} "
                f"between {window.start.isoformat()}-{window.end.isoformat()}"
            )

        return conflicts

    @BaseService.measure_operation("has_session_conflict")
    def has_conflict(
        self,
        creator_id: str,
        proposed_start: datetime,
        duration_minutes: int,
        exclude_session_id: Optional[str] = None,
        buffer_minutes: int = 0,
    ) -> bool:
        """
        Check if a proposed window overlaps an active session of the creator.

        Touching endpoints (one session ending exactly when the other starts)
        are not a conflict.
        """
        window = self._proposed_window(proposed_start, duration_minutes)
        overlapping = self._blocking(creator_id, window, buffer_minutes, exclude_session_id)
        return len(overlapping) > 0

    @BaseService.measure_operation("list_sessions_in_window")
    def list_sessions_in_window(
        self, creator_id: str, window_start: datetime, window_stop: datetime
    ) -> List[CoachingSession]:
        """
        Calendar view: every session of the creator whose window intersects
        [window_start, window_stop), in any status, earliest first.
        """
        window_start = ensure_utc(window_start)
        window_stop = ensure_utc(window_stop)
        if window_stop <= window_start:
            raise ValidationException(
                "Calendar window end must be after its start",
                code="INVALID_WINDOW",
                details={
                    "window_start": window_start.isoformat(),
                    "window_end": window_stop.isoformat(),
                },
            )

        return self.repository.find_overlapping(creator_id, window_start, window_stop)

    @BaseService.measure_operation("find_next_available_start")
    def find_next_available_start(
        self,
        creator_id: str,
        earliest_start: datetime,
        duration_minutes: int,
        search_until: datetime,
        buffer_minutes: int = 0,
    ) -> Optional[datetime]:
        """
        Find the first free start time for the creator.

        Searches for gaps between active sessions, starting at
        ``earliest_start`` and requiring the whole window to end by
        ``search_until``. With a buffer, each active session blocks
        ``buffer_minutes`` on either side as well.

        Returns:
            The earliest conflict-free start, or None if no gap fits
        """
        window = self._proposed_window(earliest_start, duration_minutes)
        search_until = ensure_utc(search_until)
        length = window.end - window.start
        buffer = timedelta(minutes=max(int(buffer_minutes or 0), 0))

        blocking = sorted(
            self.repository.find_active_overlapping(
                creator_id, window.start - buffer, search_until + buffer
            ),
            key=lambda s: s.scheduled_at,
        )

        current = window.start
        for session in blocking:
            if current + length <= session.scheduled_at - buffer:
                break
            current = max(current, session.ends_at + buffer)

        if current + length <= search_until:
            return current
        return None
