# backend/athena/services/session_lifecycle.py
"""
Session Lifecycle Service for the Athena session engine.

Owns the session status state machine:

    pending -> confirmed      (participant; provisions a room, re-checks conflicts)
    pending -> cancelled      (participant)
    confirmed -> cancelled    (participant)
    confirmed -> in_progress  (system; sets started_at)
    in_progress -> completed  (system; sets ended_at)

Every other pair, including same-status requests and anything out of a
terminal status, is rejected without touching the record. All checks and
room provisioning complete before the single write that applies the new
status together with its side effects.
"""

from enum import Enum
import logging
from typing import Any, Dict, Optional, Union

from sqlalchemy.orm import Session

from ..core.clock import Clock, system_clock
from ..core.exceptions import (
    InvalidTransitionException,
    SessionAuthorizationException,
    SessionConflictException,
    SessionNotFoundException,
)
from ..core.session_lock import creator_booking_lock
from ..models.session import CoachingSession, SessionStatus
from ..repositories import RepositoryFactory
from ..repositories.session_repository import SessionRepository
from .availability_service import AvailabilityService
from .base import BaseService
from .conflict_checker import ConflictChecker
from .room_provisioner import RoomProvisioner, build_room_provisioner

logger = logging.getLogger(__name__)


class TransitionActor(str, Enum):
    """Who may trigger a transition."""

    PARTICIPANT = "participant"
    SYSTEM = "system"


TRANSITIONS: Dict[SessionStatus, Dict[SessionStatus, TransitionActor]] = {
    SessionStatus.PENDING: {
        SessionStatus.CONFIRMED: TransitionActor.PARTICIPANT,
        SessionStatus.CANCELLED: TransitionActor.PARTICIPANT,
    },
    SessionStatus.CONFIRMED: {
        SessionStatus.CANCELLED: TransitionActor.PARTICIPANT,
        SessionStatus.IN_PROGRESS: TransitionActor.SYSTEM,
    },
    SessionStatus.IN_PROGRESS: {
        SessionStatus.COMPLETED: TransitionActor.SYSTEM,
    },
}


def transition_actor(
    current: Union[SessionStatus, str], target: Union[SessionStatus, str]
) -> Optional[TransitionActor]:
    """Return who may move a session from ``current`` to ``target``, or None if never allowed."""
    return TRANSITIONS.get(SessionStatus(current), {}).get(SessionStatus(target))


class SessionLifecycle(BaseService):
    """
    Validates and applies session status transitions.

    Participant transitions check the acting user against the session's
    consumer and creator before anything else. System transitions (start,
    complete) have no actor.
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
        super().__init__(db)
        self.repository = repository or RepositoryFactory.create_session_repository(db)
        self.conflict_checker = conflict_checker or ConflictChecker(db, self.repository)
        self.room_provisioner = room_provisioner or build_room_provisioner()
        self.clock = clock
        self.availability = availability or AvailabilityService(
            db, session_repository=self.repository, clock=clock
        )

    def _load(self, session_id: str) -> CoachingSession:
        session = self.repository.find_by_id(session_id)
        if session is None:
            raise SessionNotFoundException(session_id)
        return session

    @BaseService.measure_operation("transition_session")
    def transition(
        self,
        session_id: str,
        new_status: Union[SessionStatus, str],
        *,
        acting_user_id: Optional[str] = None,
        system: bool = False,
        creator_notes: Optional[str] = None,
        cancellation_reason: Optional[str] = None,
    ) -> CoachingSession:
        """
        Move a session to ``new_status``.

        Args:
            session_id: Session to update
            new_status: Requested status
            acting_user_id: Participant requesting the change (ignored when ``system``)
            system: True for scheduler-driven start/complete
            creator_notes: Attached when supplied by the creator
            cancellation_reason: Stored only on entry into cancelled

        Raises:
            SessionNotFoundException: No such session
            SessionAuthorizationException: Actor is not a participant
            InvalidTransitionException: Transition not in the table
            SessionConflictException: Confirming would double-book the creator
            ProvisioningException: No room could be created on confirmation
        """
        target = SessionStatus(new_status)
        session = self._load(session_id)

        if target != SessionStatus.CONFIRMED:
            return self._apply(
                session, target, acting_user_id, system, creator_notes, cancellation_reason
            )

        with creator_booking_lock(session.creator_id):
            self.db.refresh(session)
            return self._apply(
                session, target, acting_user_id, system, creator_notes, cancellation_reason
            )

    def _apply(
        self,
        session: CoachingSession,
        target: SessionStatus,
        acting_user_id: Optional[str],
        system: bool,
        creator_notes: Optional[str],
        cancellation_reason: Optional[str],
    ) -> CoachingSession:
        if not system and not session.is_participant(acting_user_id):
            raise SessionAuthorizationException(session.id, str(acting_user_id))

        current = session.status_enum
        actor = transition_actor(current, target)
        if actor is None or (system and actor != TransitionActor.SYSTEM):
            raise InvalidTransitionException(session.id, current.value, target.value)

        now = self.clock.now()
        updates: Dict[str, Any] = {"status": target.value}

        if target == SessionStatus.CONFIRMED:
            conflicts = self.conflict_checker.find_conflicts(
                session.creator_id,
                session.scheduled_at,
                session.duration_minutes,
                exclude_session_id=session.id,
                buffer_minutes=self.availability.get_booking_rules(
                    session.creator_id
                ).buffer_minutes,
            )
            if conflicts:
                raise SessionConflictException(details={"conflicts": conflicts})
            updates["confirmed_at"] = now
            if not session.has_room:
                room = self.room_provisioner.provision(session.video_provider, session.id)
                updates.update(
                    video_provider=room.provider.value,
                    video_room_id=room.room_id,
                    video_room_url=room.join_url,
                )
        elif target == SessionStatus.IN_PROGRESS:
            updates["started_at"] = now
        elif target == SessionStatus.COMPLETED:
            updates["ended_at"] = now
        elif target == SessionStatus.CANCELLED:
            updates["cancelled_at"] = now
            updates["cancelled_by_id"] = acting_user_id
            if cancellation_reason is not None:
                updates["cancellation_reason"] = cancellation_reason

        if creator_notes is not None:
            if not system and acting_user_id == session.creator_id:
                updates["creator_notes"] = creator_notes
            else:
                self.logger.debug(
                    "Ignoring creator notes from non-creator %s on session %s",
                    acting_user_id,
                    session.id,
                )

        with self.transaction():
            updated = self.repository.update_fields(session.id, updated_at=now, **updates)
            if updated is None:
                raise SessionNotFoundException(session.id)

        self.log_operation(
            "session_transition",
            session_id=session.id,
            from_status=current.value,
            to_status=target.value,
            actor="system" if system else acting_user_id,
        )
        return updated

    @BaseService.measure_operation("annotate_session")
    def annotate(self, session_id: str, acting_user_id: str, notes: str) -> CoachingSession:
        """
        Set creator notes without changing status.

        Raises:
            SessionNotFoundException: No such session
            SessionAuthorizationException: Actor is not the session's creator
        """
        session = self._load(session_id)
        if acting_user_id != session.creator_id:
            raise SessionAuthorizationException(session.id, acting_user_id)

        with self.transaction():
            updated = self.repository.update_fields(
                session.id, updated_at=self.clock.now(), creator_notes=notes
            )
            if updated is None:
                raise SessionNotFoundException(session.id)

        self.log_operation("session_annotated", session_id=session.id)
        return updated
