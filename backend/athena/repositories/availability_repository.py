# backend/athena/repositories/availability_repository.py
"""
AvailabilityRepository - creator weekly ranges, date overrides and
session settings.

Does not commit; AvailabilityService owns the transaction boundaries.
"""

from datetime import date, datetime, time
import logging
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import and_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.availability import CreatorAvailability, CreatorSessionSettings, DateOverride

logger = logging.getLogger(__name__)


class AvailabilityRepository:
    """Repository for creator availability and session settings."""

    def __init__(self, db: Session):
        """Initialize repository."""
        self.db = db
        self.logger = logging.getLogger(__name__)

    # Weekly ranges

    def find_weekly(self, creator_id: str, active_only: bool = False) -> List[CreatorAvailability]:
        """Weekly ranges of the creator ordered by day, then start time."""
        try:
            query = self.db.query(CreatorAvailability).filter(
                CreatorAvailability.creator_id == creator_id
            )
            if active_only:
                query = query.filter(CreatorAvailability.is_active.is_(True))
            return list(
                query.order_by(
                    CreatorAvailability.day_of_week, CreatorAvailability.start_time
                ).all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting weekly availability: {str(e)}")
            raise RepositoryException(f"Failed to get weekly availability: {str(e)}")

    def replace_weekly(
        self, creator_id: str, ranges: Sequence[Dict[str, Any]], now: datetime
    ) -> List[CreatorAvailability]:
        """
        Delete every weekly range of the creator and insert ``ranges``.

        Args:
            creator_id: The creator ID
            ranges: Dicts with day_of_week, start_time, end_time, is_active
            now: Timestamp for created_at/updated_at

        Returns:
            The inserted rows
        """
        try:
            self.db.query(CreatorAvailability).filter(
                CreatorAvailability.creator_id == creator_id
            ).delete(synchronize_session=False)
            rows = [
                CreatorAvailability(creator_id=creator_id, created_at=now, updated_at=now, **item)
                for item in ranges
            ]
            self.db.add_all(rows)
            self.db.flush()
            return rows
        except IntegrityError as e:
            self.logger.error(f"Integrity error replacing availability: {str(e)}")
            raise RepositoryException(f"Invalid availability range: {str(e)}")
        except SQLAlchemyError as e:
            self.logger.error(f"Error replacing availability: {str(e)}")
            raise RepositoryException(f"Failed to replace availability: {str(e)}")

    # Date overrides

    def find_date_overrides(
        self,
        creator_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[DateOverride]:
        """Overrides of the creator, optionally limited to [start_date, end_date], by date."""
        try:
            query = self.db.query(DateOverride).filter(DateOverride.creator_id == creator_id)
            if start_date is not None:
                query = query.filter(DateOverride.date >= start_date)
            if end_date is not None:
                query = query.filter(DateOverride.date <= end_date)
            return list(query.order_by(DateOverride.date).all())
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting date overrides: {str(e)}")
            raise RepositoryException(f"Failed to get date overrides: {str(e)}")

    def upsert_date_override(
        self,
        creator_id: str,
        override_date: date,
        *,
        start_time: Optional[time],
        end_time: Optional[time],
        is_available: bool,
        now: datetime,
    ) -> DateOverride:
        """Create or replace the override for one date."""
        try:
            override = (
                self.db.query(DateOverride)
                .filter(
                    and_(
                        DateOverride.creator_id == creator_id,
                        DateOverride.date == override_date,
                    )
                )
                .one_or_none()
            )
            if override is None:
                override = DateOverride(
                    creator_id=creator_id, date=override_date, created_at=now
                )
                self.db.add(override)
            override.start_time = start_time
            override.end_time = end_time
            override.is_available = is_available
            override.updated_at = now
            self.db.flush()
            return override
        except IntegrityError as e:
            self.logger.error(f"Integrity error saving date override: {str(e)}")
            raise RepositoryException(f"Invalid date override: {str(e)}")
        except SQLAlchemyError as e:
            self.logger.error(f"Error saving date override: {str(e)}")
            raise RepositoryException(f"Failed to save date override: {str(e)}")

    # Session settings

    def find_settings(self, creator_id: str) -> Optional[CreatorSessionSettings]:
        try:
            return (
                self.db.query(CreatorSessionSettings)
                .filter(CreatorSessionSettings.creator_id == creator_id)
                .one_or_none()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting session settings: {str(e)}")
            raise RepositoryException(f"Failed to get session settings: {str(e)}")

    def create_settings(self, creator_id: str, **fields: Any) -> CreatorSessionSettings:
        try:
            row = CreatorSessionSettings(creator_id=creator_id, **fields)
            self.db.add(row)
            self.db.flush()
            return row
        except IntegrityError as e:
            self.logger.error(f"Integrity error creating session settings: {str(e)}")
            raise RepositoryException(f"Session settings already exist: {str(e)}")
        except SQLAlchemyError as e:
            self.logger.error(f"Error creating session settings: {str(e)}")
            raise RepositoryException(f"Failed to create session settings: {str(e)}")

    def update_settings(
        self, row: CreatorSessionSettings, **changes: Any
    ) -> CreatorSessionSettings:
        try:
            for field, value in changes.items():
                setattr(row, field, value)
            self.db.flush()
            return row
        except SQLAlchemyError as e:
            self.logger.error(f"Error updating session settings: {str(e)}")
            raise RepositoryException(f"Failed to update session settings: {str(e)}")
