# backend/tests/conftest.py
"""
Shared pytest fixtures.

Every test runs against an in-memory SQLite engine. Each test gets its own
connection-level transaction that is rolled back afterwards, so service
commits only release savepoints and nothing leaks between tests.
"""

from datetime import datetime
import os
from typing import Any, Callable, Iterator, Optional

# Set testing mode BEFORE any athena imports
os.environ["ENVIRONMENT"] = "testing"
os.environ.pop("SESSION_LOCK_REDIS_URL", None)
os.environ.pop("DAILY_API_KEY", None)

import pytest  # noqa: E402
from sqlalchemy import create_engine, event  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from athena.core.clock import FrozenClock  # noqa: E402
from athena.core.session_lock import reset_session_lock_state  # noqa: E402
from athena.database import Base  # noqa: E402
from athena.integrations.daily_client import FakeDailyClient  # noqa: E402

# Import models so Base.metadata is populated for create_all.
import athena.models  # noqa: F401,E402
from athena.models.session import CoachingSession, SessionStatus  # noqa: E402
from athena.repositories.availability_repository import AvailabilityRepository  # noqa: E402
from athena.repositories.session_repository import SessionRepository  # noqa: E402
from athena.services.availability_service import AvailabilityService  # noqa: E402
from athena.services.room_provisioner import RoomProvisioner  # noqa: E402
from athena.services.session_booking_service import SessionBookingService  # noqa: E402
from tests.helpers.scenario import NOW, at  # noqa: E402


@pytest.fixture(scope="session")
def _engine():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        future=True,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    # pysqlite does not emit BEGIN itself; take over transaction control so
    # the per-test outer transaction and its savepoints really roll back.
    @event.listens_for(engine, "connect")
    def _do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _do_begin(conn):
        conn.exec_driver_sql("BEGIN")

    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db(_engine) -> Iterator[Session]:
    """
    Provide a transactional session bound to the shared in-memory engine.
    """
    connection = _engine.connect()
    transaction = connection.begin()
    session = Session(
        bind=connection,
        join_transaction_mode="create_savepoint",
        expire_on_commit=False,
    )
    try:
        yield session
    finally:
        session.close()
        transaction.rollback()
        connection.close()


@pytest.fixture(autouse=True)
def _reset_session_locks() -> Iterator[None]:
    reset_session_lock_state()
    yield
    reset_session_lock_state()


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(NOW)


@pytest.fixture
def fake_daily() -> FakeDailyClient:
    return FakeDailyClient(subdomain="athena")


@pytest.fixture
def provisioner() -> RoomProvisioner:
    return RoomProvisioner(default_provider="jitsi", jitsi_base_url="https://meet.jit.si")


@pytest.fixture
def session_repository(db: Session) -> SessionRepository:
    return SessionRepository(db)


@pytest.fixture
def availability_repository(db: Session) -> AvailabilityRepository:
    return AvailabilityRepository(db)


@pytest.fixture
def availability_service(
    db: Session, clock: FrozenClock, session_repository: SessionRepository
) -> AvailabilityService:
    return AvailabilityService(db, session_repository=session_repository, clock=clock)


@pytest.fixture
def booking_service(
    db: Session,
    clock: FrozenClock,
    provisioner: RoomProvisioner,
    session_repository: SessionRepository,
    availability_service: AvailabilityService,
) -> SessionBookingService:
    return SessionBookingService(
        db,
        repository=session_repository,
        room_provisioner=provisioner,
        availability=availability_service,
        clock=clock,
    )


@pytest.fixture
def make_session(session_repository: SessionRepository, db: Session) -> Callable[..., CoachingSession]:
    """Insert a session row directly, in any status."""

    def _make(
        *,
        creator_id: str = "C1",
        consumer_id: str = "U1",
        scheduled_at: Optional[datetime] = None,
        duration_minutes: int = 60,
        status: SessionStatus = SessionStatus.CONFIRMED,
        **fields: Any,
    ) -> CoachingSession:
        session = session_repository.insert(
            creator_id=creator_id,
            consumer_id=consumer_id,
            scheduled_at=scheduled_at or at(14),
            duration_minutes=duration_minutes,
            status=SessionStatus(status).value,
            video_provider=fields.pop("video_provider", "jitsi"),
            currency=fields.pop("currency", "USD"),
            created_at=NOW,
            updated_at=NOW,
            **fields,
        )
        db.commit()
        return session

    return _make
