# backend/athena/api/dependencies/database.py
"""
Database dependencies for FastAPI routes.
"""

from ...database import get_db

__all__ = ["get_db"]
