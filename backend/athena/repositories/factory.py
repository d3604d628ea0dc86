# backend/athena/repositories/factory.py
"""
Repository Factory for the Athena session engine.

Provides centralized creation of repository instances,
ensuring consistent initialization and dependency injection.
"""

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

# Avoid circular imports
if TYPE_CHECKING:
    from .availability_repository import AvailabilityRepository
    from .session_repository import SessionRepository


class RepositoryFactory:
    """
    Factory class for creating repository instances.

    Centralizes repository creation so services never construct
    repositories directly and tests can swap implementations.
    """

    @staticmethod
    def create_session_repository(db: Session) -> "SessionRepository":
        """Create repository for session persistence and overlap queries."""
        from .session_repository import SessionRepository

        return SessionRepository(db)

    @staticmethod
    def create_availability_repository(db: Session) -> "AvailabilityRepository":
        """Create repository for weekly ranges, date overrides and session settings."""
        from .availability_repository import AvailabilityRepository

        return AvailabilityRepository(db)
