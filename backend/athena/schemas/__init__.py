# backend/athena/schemas/__init__.py
"""Pydantic request/response schemas."""

from .session import (
    NextAvailableStartResponse,
    SessionAnnotate,
    SessionBook,
    SessionResponse,
    SessionStatusUpdate,
)

__all__ = [
    "NextAvailableStartResponse",
    "SessionAnnotate",
    "SessionBook",
    "SessionResponse",
    "SessionStatusUpdate",
]
