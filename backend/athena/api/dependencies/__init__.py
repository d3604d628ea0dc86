# backend/athena/api/dependencies/__init__.py
"""
FastAPI dependencies for the session API.

Usage:
    from athena.api.dependencies import get_acting_user_id, get_session_booking_service
"""

from .auth import get_acting_user_id
from .database import get_db
from .services import (
    get_availability_service,
    get_clock,
    get_room_provisioner,
    get_session_booking_service,
)

__all__ = [
    "get_acting_user_id",
    "get_availability_service",
    "get_clock",
    "get_db",
    "get_room_provisioner",
    "get_session_booking_service",
]
