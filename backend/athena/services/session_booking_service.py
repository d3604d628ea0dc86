# backend/athena/services/session_booking_service.py
"""
Session Booking Service for the Athena session engine.

Public entry point for session operations. Validates booking input,
applies the creator's booking rules, serializes check-then-insert per
creator, and delegates status changes to the lifecycle service.
"""

from datetime import datetime, timedelta
from decimal import Decimal
import logging
from typing import List, Optional, Union

from sqlalchemy.orm import Session

from ..core.clock import Clock, ensure_utc, system_clock
from ..core.config import settings
from ..core.exceptions import (
    SessionConflictException,
    SessionNotFoundException,
    ValidationException,
)
from ..core.session_lock import creator_booking_lock
from ..domain.availability import BookingRules
from ..domain.session_windows import whole_minutes
from ..models.session import CoachingSession, ParticipantRole, SessionStatus, VideoProvider
from ..repositories import RepositoryFactory
from ..repositories.session_repository import SessionRepository
from .availability_service import AvailabilityService
from .base import BaseService
from .conflict_checker import ConflictChecker
from .room_provisioner import RoomProvisioner, build_room_provisioner
from .session_lifecycle import SessionLifecycle

logger = logging.getLogger(__name__)


class SessionBookingService(BaseService):
    """
    Service layer for booking and managing sessions.

    One instance per unit of work; the db session it wraps is the
    transaction boundary for every write.
    """

    def __init__(
        self,
        db: Session,
        repository: Optional[SessionRepository] = None,
        conflict_checker: Optional[ConflictChecker] = None,
        room_provisioner: Optional[RoomProvisioner] = None,
        availability: Optional[AvailabilityService] = None,
        clock: Clock = system_clock,
    ):
        """
        Initialize booking service.

        Args:
            db: Database session
            repository: Optional SessionRepository instance
            conflict_checker: Optional ConflictChecker instance
            room_provisioner: Optional RoomProvisioner instance
            availability: Optional AvailabilityService for per-creator booking rules
            clock: Time source for every "now" comparison
        """
        super().__init__(db)
        self.repository = repository or RepositoryFactory.create_session_repository(db)
        self.conflict_checker = conflict_checker or ConflictChecker(db, self.repository)
        self.room_provisioner = room_provisioner or build_room_provisioner()
        self.clock = clock
        self.availability = availability or AvailabilityService(
            db, session_repository=self.repository, clock=clock
        )
        self.lifecycle = SessionLifecycle(
            db,
            repository=self.repository,
            conflict_checker=self.conflict_checker,
            room_provisioner=self.room_provisioner,
            availability=self.availability,
            clock=clock,
        )

    # Booking

    def _validate_booking(
        self,
        consumer_id: str,
        creator_id: str,
        scheduled_at: datetime,
        duration_minutes: int,
        rules: BookingRules,
    ) -> int:
        if not consumer_id or not creator_id:
            raise ValidationException(
                "Consumer and creator are required",
                code="MISSING_PARTICIPANT",
            )

        now = self.clock.now()
        if scheduled_at <= now:
            raise ValidationException(
                "Scheduled time must be in the future",
                code="SCHEDULED_IN_PAST",
                details={"scheduled_at": scheduled_at.isoformat()},
            )

        minimum = settings.min_session_duration_minutes
        minutes = whole_minutes(duration_minutes)
        if minutes is None or minutes < minimum:
            raise ValidationException(
                f"Duration must be a whole number of at least {minimum} minutes",
                code="INVALID_DURATION",
                details={"duration_minutes": duration_minutes},
            )

        if scheduled_at < rules.earliest_start(now):
            raise ValidationException(
                f"Sessions must be booked at least {rules.minimum_notice_hours} hours ahead",
                code="INSUFFICIENT_NOTICE",
                details={
                    "scheduled_at": scheduled_at.isoformat(),
                    "minimum_notice_hours": rules.minimum_notice_hours,
                },
            )

        latest = rules.latest_start(now)
        if latest is not None and scheduled_at > latest:
            raise ValidationException(
                f"Sessions can be booked at most {rules.max_advance_booking_days} days ahead",
                code="TOO_FAR_IN_ADVANCE",
                details={
                    "scheduled_at": scheduled_at.isoformat(),
                    "max_advance_booking_days": rules.max_advance_booking_days,
                },
            )

        return minutes

    @BaseService.measure_operation("book_session")
    def book(
        self,
        consumer_id: str,
        creator_id: str,
        scheduled_at: datetime,
        duration_minutes: int,
        *,
        video_provider: Union[VideoProvider, str, None] = None,
        price: Optional[Decimal] = None,
        currency: Optional[str] = None,
        student_notes: Optional[str] = None,
    ) -> CoachingSession:
        """
        Reserve a slot with a creator.

        The new session is ``pending`` and has no room yet. Pending sessions
        do not block other bookings; only confirmed and in-progress ones do,
        widened by the creator's buffer time.

        Raises:
            ValidationException: Past start, bad duration, missing participant,
                too little notice or too far in advance
            SessionConflictException: Creator is busy during the window
            ConflictException: Booking lock for the creator is busy
        """
        scheduled_at = ensure_utc(scheduled_at)
        rules = self.availability.get_booking_rules(creator_id) if creator_id else BookingRules()
        minutes = self._validate_booking(
            consumer_id, creator_id, scheduled_at, duration_minutes, rules
        )
        provider = self.room_provisioner.resolve_provider(video_provider)

        with creator_booking_lock(creator_id):
            conflicts = self.conflict_checker.find_conflicts(
                creator_id, scheduled_at, minutes, buffer_minutes=rules.buffer_minutes
            )
            if conflicts:
                raise SessionConflictException(details={"conflicts": conflicts})

            now = self.clock.now()
            with self.transaction():
                session = self.repository.insert(
                    consumer_id=consumer_id,
                    creator_id=creator_id,
                    scheduled_at=scheduled_at,
                    duration_minutes=minutes,
                    status=SessionStatus.PENDING.value,
                    video_provider=provider.value,
                    price=price,
                    currency=(currency or settings.default_currency).upper(),
                    student_notes=student_notes,
                    created_at=now,
                    updated_at=now,
                )

        self.log_operation(
            "session_booked",
            session_id=session.id,
            consumer_id=consumer_id,
            creator_id=creator_id,
        )
        return session

    # Reads

    @BaseService.measure_operation("get_session")
    def get_by_id(self, session_id: str) -> CoachingSession:
        session = self.repository.find_by_id(session_id)
        if session is None:
            raise SessionNotFoundException(session_id)
        return session

    @BaseService.measure_operation("list_consumer_sessions")
    def list_for_consumer(self, consumer_id: str) -> List[CoachingSession]:
        """All sessions booked by the consumer, most recent start first."""
        return self.repository.find_by_participant(consumer_id, ParticipantRole.CONSUMER)

    @BaseService.measure_operation("list_creator_sessions")
    def list_for_creator(self, creator_id: str) -> List[CoachingSession]:
        """All sessions hosted by the creator, most recent start first."""
        return self.repository.find_by_participant(creator_id, ParticipantRole.CREATOR)

    @BaseService.measure_operation("list_upcoming_sessions")
    def list_upcoming_for_consumer(self, consumer_id: str) -> List[CoachingSession]:
        return self.repository.find_upcoming_for_consumer(consumer_id, self.clock.now())

    def list_calendar(
        self, creator_id: str, window_start: datetime, window_stop: datetime
    ) -> List[CoachingSession]:
        return self.conflict_checker.list_sessions_in_window(creator_id, window_start, window_stop)

    def suggest_next_start(
        self,
        creator_id: str,
        earliest_start: datetime,
        duration_minutes: int,
        search_hours: int = 24,
    ) -> Optional[datetime]:
        """
        Earliest bookable start at or after ``earliest_start`` within the
        next ``search_hours``.

        Never in the past or inside the creator's minimum notice, keeps the
        buffer clear of active sessions, and returns None when the only gap
        lies beyond the advance booking window.
        """
        rules = self.availability.get_booking_rules(creator_id)
        now = self.clock.now()
        start = max(ensure_utc(earliest_start), now, rules.earliest_start(now))
        found = self.conflict_checker.find_next_available_start(
            creator_id,
            start,
            duration_minutes,
            start + timedelta(hours=search_hours),
            buffer_minutes=rules.buffer_minutes,
        )
        latest = rules.latest_start(now)
        if found is not None and latest is not None and found > latest:
            return None
        return found

    @BaseService.measure_operation("list_sessions_needing_reminder")
    def list_needing_reminder(self, window_minutes: Optional[int] = None) -> List[CoachingSession]:
        """Confirmed sessions starting between now and now + ``window_minutes``."""
        now = self.clock.now()
        minutes = settings.reminder_window_minutes if window_minutes is None else window_minutes
        return self.repository.find_confirmed_starting_between(
            now, now + timedelta(minutes=minutes)
        )

    # Status changes

    def update_status(
        self,
        session_id: str,
        acting_user_id: str,
        new_status: Union[SessionStatus, str],
        *,
        creator_notes: Optional[str] = None,
        cancellation_reason: Optional[str] = None,
    ) -> CoachingSession:
        """Participant-requested status change; see SessionLifecycle.transition."""
        try:
            target = SessionStatus(new_status)
        except ValueError:
            raise ValidationException(
                f"Unknown session status: {new_status}",
                code="INVALID_STATUS",
                details={"status": new_status},
            )
        return self.lifecycle.transition(
            session_id,
            target,
            acting_user_id=acting_user_id,
            creator_notes=creator_notes,
            cancellation_reason=cancellation_reason,
        )

    def start(self, session_id: str) -> CoachingSession:
        """Mark a confirmed session as started (system action)."""
        return self.lifecycle.transition(session_id, SessionStatus.IN_PROGRESS, system=True)

    def complete(self, session_id: str) -> CoachingSession:
        """Mark an in-progress session as completed (system action)."""
        return self.lifecycle.transition(session_id, SessionStatus.COMPLETED, system=True)

    def cancel(
        self, session_id: str, acting_user_id: str, reason: Optional[str] = None
    ) -> CoachingSession:
        return self.lifecycle.transition(
            session_id,
            SessionStatus.CANCELLED,
            acting_user_id=acting_user_id,
            cancellation_reason=reason,
        )

    def annotate(self, session_id: str, acting_user_id: str, notes: str) -> CoachingSession:
        return self.lifecycle.annotate(session_id, acting_user_id, notes)
