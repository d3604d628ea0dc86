"""
Availability routes - API v1

Creator availability, session settings and bookable slots under
/api/v1/availability. All business logic delegated to AvailabilityService.

Endpoints:
    PUT   /me                        → Replace the acting creator's weekly ranges
    GET   /me                        → Acting creator's weekly ranges
    GET   /creator/{creator_id}      → A creator's weekly ranges
    GET   /slots/{creator_id}        → Bookable start times per date
    GET   /settings/me               → Acting creator's session settings
    PATCH /settings/me               → Partial settings update
    GET   /settings/{creator_id}     → A creator's session settings
    PUT   /overrides/me              → Create or replace date overrides
    GET   /overrides/me              → Acting creator's date overrides
    GET   /overrides/{creator_id}    → A creator's date overrides
"""

import asyncio
from datetime import date
import logging
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query

from ...api.dependencies import get_acting_user_id, get_availability_service
from ...core.exceptions import DomainException
from ...schemas.availability import (
    AvailableDayResponse,
    DateOverrideResponse,
    DateOverridesSet,
    SessionSettingsResponse,
    SessionSettingsUpdate,
    WeeklyAvailabilitySet,
    WeeklyRangeResponse,
)
from ...services.availability_service import AvailabilityService
from .sessions import handle_domain_exception

logger = logging.getLogger(__name__)

router = APIRouter(tags=["availability-v1"])


# Weekly ranges


@router.put("/me", response_model=List[WeeklyRangeResponse])
async def set_my_weekly_availability(
    payload: WeeklyAvailabilitySet = Body(...),
    acting_user_id: str = Depends(get_acting_user_id),
    service: AvailabilityService = Depends(get_availability_service),
) -> List[WeeklyRangeResponse]:
    """Replace every weekly range of the acting creator."""
    try:
        rows = await asyncio.to_thread(
            service.set_weekly_availability, acting_user_id, payload.ranges
        )
        return [WeeklyRangeResponse.model_validate(r) for r in rows]
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/me", response_model=List[WeeklyRangeResponse])
async def get_my_weekly_availability(
    acting_user_id: str = Depends(get_acting_user_id),
    service: AvailabilityService = Depends(get_availability_service),
) -> List[WeeklyRangeResponse]:
    try:
        rows = await asyncio.to_thread(service.get_weekly_availability, acting_user_id)
        return [WeeklyRangeResponse.model_validate(r) for r in rows]
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/creator/{creator_id}", response_model=List[WeeklyRangeResponse])
async def get_creator_weekly_availability(
    creator_id: str,
    acting_user_id: str = Depends(get_acting_user_id),
    service: AvailabilityService = Depends(get_availability_service),
) -> List[WeeklyRangeResponse]:
    try:
        rows = await asyncio.to_thread(service.get_weekly_availability, creator_id)
        return [WeeklyRangeResponse.model_validate(r) for r in rows]
    except DomainException as e:
        handle_domain_exception(e)


# Slots


@router.get("/slots/{creator_id}", response_model=List[AvailableDayResponse])
async def get_available_slots(
    creator_id: str,
    start_date: date = Query(..., description="First creator-local date"),
    end_date: date = Query(..., description="Last creator-local date (inclusive)"),
    duration: Optional[int] = Query(
        None, description="Session length in minutes; defaults to the creator's default"
    ),
    acting_user_id: str = Depends(get_acting_user_id),
    service: AvailabilityService = Depends(get_availability_service),
) -> List[AvailableDayResponse]:
    """
    Bookable start times ("HH:MM" in the creator's timezone) for each date
    that has at least one.
    """
    try:
        days = await asyncio.to_thread(
            service.get_available_slots, creator_id, start_date, end_date, duration
        )
        return [AvailableDayResponse.model_validate(d) for d in days]
    except DomainException as e:
        handle_domain_exception(e)


# Session settings


@router.get("/settings/me", response_model=SessionSettingsResponse)
async def get_my_settings(
    acting_user_id: str = Depends(get_acting_user_id),
    service: AvailabilityService = Depends(get_availability_service),
) -> SessionSettingsResponse:
    try:
        row = await asyncio.to_thread(service.get_settings, acting_user_id)
        return SessionSettingsResponse.model_validate(row)
    except DomainException as e:
        handle_domain_exception(e)


@router.patch("/settings/me", response_model=SessionSettingsResponse)
async def update_my_settings(
    payload: SessionSettingsUpdate = Body(...),
    acting_user_id: str = Depends(get_acting_user_id),
    service: AvailabilityService = Depends(get_availability_service),
) -> SessionSettingsResponse:
    try:
        row = await asyncio.to_thread(service.update_settings, acting_user_id, payload)
        return SessionSettingsResponse.model_validate(row)
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/settings/{creator_id}", response_model=SessionSettingsResponse)
async def get_creator_settings(
    creator_id: str,
    acting_user_id: str = Depends(get_acting_user_id),
    service: AvailabilityService = Depends(get_availability_service),
) -> SessionSettingsResponse:
    try:
        row = await asyncio.to_thread(service.get_settings, creator_id)
        return SessionSettingsResponse.model_validate(row)
    except DomainException as e:
        handle_domain_exception(e)


# Date overrides


@router.put("/overrides/me", response_model=List[DateOverrideResponse])
async def set_my_date_overrides(
    payload: DateOverridesSet = Body(...),
    acting_user_id: str = Depends(get_acting_user_id),
    service: AvailabilityService = Depends(get_availability_service),
) -> List[DateOverrideResponse]:
    try:
        rows = await asyncio.to_thread(
            service.set_date_overrides, acting_user_id, payload.overrides
        )
        return [DateOverrideResponse.model_validate(r) for r in rows]
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/overrides/me", response_model=List[DateOverrideResponse])
async def get_my_date_overrides(
    acting_user_id: str = Depends(get_acting_user_id),
    service: AvailabilityService = Depends(get_availability_service),
) -> List[DateOverrideResponse]:
    try:
        rows = await asyncio.to_thread(service.get_date_overrides, acting_user_id)
        return [DateOverrideResponse.model_validate(r) for r in rows]
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/overrides/{creator_id}", response_model=List[DateOverrideResponse])
async def get_creator_date_overrides(
    creator_id: str,
    acting_user_id: str = Depends(get_acting_user_id),
    service: AvailabilityService = Depends(get_availability_service),
) -> List[DateOverrideResponse]:
    try:
        rows = await asyncio.to_thread(service.get_date_overrides, creator_id)
        return [DateOverrideResponse.model_validate(r) for r in rows]
    except DomainException as e:
        handle_domain_exception(e)
