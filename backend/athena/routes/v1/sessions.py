"""
Sessions routes - API v1

Session booking and lifecycle endpoints under /api/v1/sessions.
All business logic delegated to SessionBookingService.

Endpoints:
    POST  /book                             → Book a session (acting user is the consumer)
    GET   /me                               → Sessions booked by the acting user
    GET   /upcoming                         → Acting user's confirmed future sessions
    GET   /creator/{creator_id}             → Sessions hosted by a creator
    GET   /creator/{creator_id}/calendar    → Creator sessions overlapping a time range
    GET   /creator/{creator_id}/next-available → Earliest free start for a duration
    GET   /{session_id}                     → Session by id
    PATCH /{session_id}/status              → Participant status change
    PATCH /{session_id}/start               → Mark confirmed session in progress
    PATCH /{session_id}/complete            → Mark in-progress session completed
    PATCH /{session_id}/cancel              → Cancel (reason as query parameter)
    PATCH /{session_id}/notes               → Creator notes without a status change
"""

import asyncio
from datetime import datetime
import logging
from typing import Any, List, NoReturn, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from fastapi.params import Path

from ...api.dependencies import get_acting_user_id, get_session_booking_service
from ...core.exceptions import DomainException
from ...schemas.session import (
    NextAvailableStartResponse,
    SessionAnnotate,
    SessionBook,
    SessionResponse,
    SessionStatusUpdate,
)
from ...services.session_booking_service import SessionBookingService

logger = logging.getLogger(__name__)

# V1 router - no prefix here, will be added when mounting in main.py
router = APIRouter(tags=["sessions-v1"])

ULID_PATH_PATTERN = r"^[0-9A-HJKMNP-TV-Z]{26}$"


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


def _session_id_path() -> Any:
    return Path(
        ...,
        description="Session ULID",
        pattern=ULID_PATH_PATTERN,
        examples=["01HF4G12ABCDEF3456789XYZAB"],
    )


@router.post(
    "/book",
    response_model=SessionResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"description": "Creator has a conflicting session"}},
)
async def book_session(
    payload: SessionBook = Body(...),
    acting_user_id: str = Depends(get_acting_user_id),
    service: SessionBookingService = Depends(get_session_booking_service),
) -> SessionResponse:
    """Book a session with a creator. The new session is pending."""
    try:
        session = await asyncio.to_thread(
            service.book,
            acting_user_id,
            payload.creator_id,
            payload.scheduled_at,
            payload.duration_minutes,
            video_provider=payload.video_provider,
            price=payload.price,
            currency=payload.currency,
            student_notes=payload.student_notes,
        )
        return SessionResponse.model_validate(session)
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/me", response_model=List[SessionResponse])
async def get_my_sessions(
    acting_user_id: str = Depends(get_acting_user_id),
    service: SessionBookingService = Depends(get_session_booking_service),
) -> List[SessionResponse]:
    try:
        sessions = await asyncio.to_thread(service.list_for_consumer, acting_user_id)
        return [SessionResponse.model_validate(s) for s in sessions]
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/upcoming", response_model=List[SessionResponse])
async def get_upcoming_sessions(
    acting_user_id: str = Depends(get_acting_user_id),
    service: SessionBookingService = Depends(get_session_booking_service),
) -> List[SessionResponse]:
    try:
        sessions = await asyncio.to_thread(service.list_upcoming_for_consumer, acting_user_id)
        return [SessionResponse.model_validate(s) for s in sessions]
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/creator/{creator_id}", response_model=List[SessionResponse])
async def get_creator_sessions(
    creator_id: str,
    acting_user_id: str = Depends(get_acting_user_id),
    service: SessionBookingService = Depends(get_session_booking_service),
) -> List[SessionResponse]:
    try:
        sessions = await asyncio.to_thread(service.list_for_creator, creator_id)
        return [SessionResponse.model_validate(s) for s in sessions]
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/creator/{creator_id}/calendar", response_model=List[SessionResponse])
async def get_creator_calendar(
    creator_id: str,
    start: datetime = Query(..., description="Range start (inclusive)"),
    end: datetime = Query(..., description="Range end (exclusive)"),
    acting_user_id: str = Depends(get_acting_user_id),
    service: SessionBookingService = Depends(get_session_booking_service),
) -> List[SessionResponse]:
    """Every session of the creator overlapping [start, end), any status."""
    try:
        sessions = await asyncio.to_thread(service.list_calendar, creator_id, start, end)
        return [SessionResponse.model_validate(s) for s in sessions]
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/creator/{creator_id}/next-available", response_model=NextAvailableStartResponse)
async def get_next_available_start(
    creator_id: str,
    duration_minutes: int = Query(..., description="Session length in minutes"),
    earliest: Optional[datetime] = Query(None, description="Earliest acceptable start"),
    search_hours: int = Query(24, ge=1, le=24 * 14),
    acting_user_id: str = Depends(get_acting_user_id),
    service: SessionBookingService = Depends(get_session_booking_service),
) -> NextAvailableStartResponse:
    try:
        earliest_start = earliest or service.clock.now()
        next_start = await asyncio.to_thread(
            service.suggest_next_start,
            creator_id,
            earliest_start,
            duration_minutes,
            search_hours,
        )
        return NextAvailableStartResponse(
            creator_id=creator_id,
            duration_minutes=duration_minutes,
            next_available_start=next_start,
        )
    except DomainException as e:
        handle_domain_exception(e)


@router.get(
    "/{session_id}",
    response_model=SessionResponse,
    responses={404: {"description": "Session not found"}},
)
async def get_session(
    session_id: str = _session_id_path(),
    acting_user_id: str = Depends(get_acting_user_id),
    service: SessionBookingService = Depends(get_session_booking_service),
) -> SessionResponse:
    try:
        session = await asyncio.to_thread(service.get_by_id, session_id)
        return SessionResponse.model_validate(session)
    except DomainException as e:
        handle_domain_exception(e)


@router.patch(
    "/{session_id}/status",
    response_model=SessionResponse,
    responses={
        403: {"description": "Not a participant"},
        404: {"description": "Session not found"},
        409: {"description": "Confirming would double-book the creator"},
        422: {"description": "Transition not allowed"},
        503: {"description": "Video room could not be provisioned"},
    },
)
async def update_session_status(
    session_id: str = _session_id_path(),
    payload: SessionStatusUpdate = Body(...),
    acting_user_id: str = Depends(get_acting_user_id),
    service: SessionBookingService = Depends(get_session_booking_service),
) -> SessionResponse:
    try:
        session = await asyncio.to_thread(
            service.update_status,
            session_id,
            acting_user_id,
            payload.status,
            creator_notes=payload.creator_notes,
            cancellation_reason=payload.cancellation_reason,
        )
        return SessionResponse.model_validate(session)
    except DomainException as e:
        handle_domain_exception(e)


@router.patch("/{session_id}/start", response_model=SessionResponse)
async def start_session(
    session_id: str = _session_id_path(),
    acting_user_id: str = Depends(get_acting_user_id),
    service: SessionBookingService = Depends(get_session_booking_service),
) -> SessionResponse:
    try:
        session = await asyncio.to_thread(service.start, session_id)
        return SessionResponse.model_validate(session)
    except DomainException as e:
        handle_domain_exception(e)


@router.patch("/{session_id}/complete", response_model=SessionResponse)
async def complete_session(
    session_id: str = _session_id_path(),
    acting_user_id: str = Depends(get_acting_user_id),
    service: SessionBookingService = Depends(get_session_booking_service),
) -> SessionResponse:
    try:
        session = await asyncio.to_thread(service.complete, session_id)
        return SessionResponse.model_validate(session)
    except DomainException as e:
        handle_domain_exception(e)


@router.patch("/{session_id}/cancel", response_model=SessionResponse)
async def cancel_session(
    session_id: str = _session_id_path(),
    reason: Optional[str] = Query(None, max_length=1000),
    acting_user_id: str = Depends(get_acting_user_id),
    service: SessionBookingService = Depends(get_session_booking_service),
) -> SessionResponse:
    try:
        session = await asyncio.to_thread(service.cancel, session_id, acting_user_id, reason)
        return SessionResponse.model_validate(session)
    except DomainException as e:
        handle_domain_exception(e)


@router.patch("/{session_id}/notes", response_model=SessionResponse)
async def annotate_session(
    session_id: str = _session_id_path(),
    payload: SessionAnnotate = Body(...),
    acting_user_id: str = Depends(get_acting_user_id),
    service: SessionBookingService = Depends(get_session_booking_service),
) -> SessionResponse:
    try:
        session = await asyncio.to_thread(
            service.annotate, session_id, acting_user_id, payload.notes
        )
        return SessionResponse.model_validate(session)
    except DomainException as e:
        handle_domain_exception(e)
