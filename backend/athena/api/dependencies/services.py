# backend/athena/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

This module provides factory functions that create service instances
with their required dependencies properly injected. Tests override
``get_clock`` and ``get_room_provisioner`` through
``app.dependency_overrides``.
"""

from functools import lru_cache
import logging

from fastapi import Depends
from sqlalchemy.orm import Session

from ...core.clock import Clock, system_clock
from ...services.availability_service import AvailabilityService
from ...services.room_provisioner import RoomProvisioner, build_room_provisioner
from ...services.session_booking_service import SessionBookingService
from .database import get_db

logger = logging.getLogger(__name__)


def get_clock() -> Clock:
    return system_clock


@lru_cache(maxsize=1)
def get_room_provisioner() -> RoomProvisioner:
    """Get singleton room provisioner (stateless, safe to share)."""
    return build_room_provisioner()


def get_availability_service(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> AvailabilityService:
    """Create AvailabilityService bound to the request's db session."""
    return AvailabilityService(db, clock=clock)


def get_session_booking_service(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    room_provisioner: RoomProvisioner = Depends(get_room_provisioner),
) -> SessionBookingService:
    """Create SessionBookingService bound to the request's db session."""
    return SessionBookingService(db, room_provisioner=room_provisioner, clock=clock)
