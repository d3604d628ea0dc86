"""
Database engine, session factory, and metadata shared across the application.
"""

from __future__ import annotations

import logging
from typing import Any, Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from ..core.config import settings

logger = logging.getLogger(__name__)

Base = declarative_base()


def _engine_kwargs(url: str) -> dict[str, Any]:
    kwargs: dict[str, Any] = {"future": True, "echo": settings.database_echo}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
    else:
        kwargs["pool_pre_ping"] = True
    return kwargs


def build_engine(url: str | None = None) -> Engine:
    database_url = url or settings.database_url
    return create_engine(database_url, **_engine_kwargs(database_url))


engine = build_engine()
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, future=True)


def init_db(bind: Engine | None = None) -> None:
    """Create all tables for registered models."""
    from .. import models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
    logger.info("Session store schema ensured")


def get_db() -> Generator[Session, None, None]:
    """
    Get database session dependency.

    Yields:
        Database session that will be closed after use
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
