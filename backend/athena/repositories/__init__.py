# backend/athena/repositories/__init__.py
"""
Repository layer for the Athena session engine.

Usage:
    from athena.repositories import RepositoryFactory

    # In a service:
    repository = RepositoryFactory.create_session_repository(db)
    overlapping = repository.find_active_overlapping(creator_id, start, end)
"""

from .availability_repository import AvailabilityRepository
from .base_repository import BaseRepository
from .factory import RepositoryFactory
from .session_repository import SessionRepository

__all__ = [
    "AvailabilityRepository",
    "BaseRepository",
    "RepositoryFactory",
    "SessionRepository",
]
