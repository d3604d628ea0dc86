# backend/athena/schemas/session.py
"""
Request and response schemas for session endpoints.

Business validation (future start, duration bounds, provider fallback)
lives in the services so every caller gets the same rules; these models
only shape the payloads.
"""

from datetime import datetime
from typing import Optional

from pydantic import ConfigDict, Field, field_validator

from .base import Money, StandardizedModel, StrictModel


class SessionBook(StrictModel):
    """Book a session with a creator. The booking consumer is the acting user."""

    creator_id: str = Field(..., min_length=1, description="Creator to book")
    scheduled_at: datetime = Field(..., description="Start instant (ISO 8601, UTC if no offset)")
    duration_minutes: int = Field(..., description="Session length in minutes")
    video_provider: Optional[str] = Field(
        None, description="Requested video provider; unknown values use the default"
    )
    price: Optional[Money] = Field(None, description="Price, stored as-is")
    currency: Optional[str] = Field(
        None, max_length=10, description="ISO currency code; defaults to USD"
    )
    student_notes: Optional[str] = Field(
        None, max_length=2000, description="Optional note from the consumer"
    )

    @field_validator("currency")
    @classmethod
    def _upper_currency(cls, v: Optional[str]) -> Optional[str]:
        return v.upper() if v else v


class SessionStatusUpdate(StrictModel):
    status: str = Field(..., description="Requested status")
    creator_notes: Optional[str] = Field(
        None, max_length=4000, description="Attached only when sent by the creator"
    )
    cancellation_reason: Optional[str] = Field(
        None, max_length=1000, description="Stored only when cancelling"
    )


class SessionAnnotate(StrictModel):
    notes: str = Field(..., description="Creator notes")


class SessionResponse(StandardizedModel):
    """Session as returned by the API."""

    model_config = ConfigDict(
        from_attributes=True, use_enum_values=True, populate_by_name=True
    )

    id: str
    consumer_id: str
    creator_id: str
    scheduled_at: datetime
    ends_at: datetime
    duration_minutes: int
    status: str
    video_provider: Optional[str] = None
    video_room_id: Optional[str] = None
    video_room_url: Optional[str] = None
    price: Optional[Money] = None
    currency: Optional[str] = None
    student_notes: Optional[str] = None
    creator_notes: Optional[str] = None
    cancellation_reason: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    confirmed_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None


class NextAvailableStartResponse(StandardizedModel):
    creator_id: str
    duration_minutes: int
    next_available_start: Optional[datetime] = None
