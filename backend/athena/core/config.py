# backend/athena/core/config.py
import logging
import os
from pathlib import Path
from typing import List, Literal, Optional

from dotenv import load_dotenv
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
import pytz


def is_running_tests() -> bool:
    """
    Detect if code is running under pytest.

    PYTEST_CURRENT_TEST is set automatically by pytest during test runs, and is
    not expected to be present in production environments.
    """
    return os.getenv("PYTEST_CURRENT_TEST") is not None


logger = logging.getLogger(__name__)

# Load .env file only if not in CI
if not os.getenv("CI"):
    env_path = Path(__file__).parent.parent.parent / ".env"  # Goes up to backend/.env
    logger.info(f"[CONFIG] Looking for .env at: {env_path}")
    load_dotenv(env_path)


class Settings(BaseSettings):
    environment: Literal["development", "testing", "staging", "production"] = "development"
    is_testing: bool = False

    database_url: str = Field(
        default="sqlite+pysqlite:///./athena.db",
        description="SQLAlchemy URL for the session store",
    )
    database_echo: bool = False

    # Video rooms
    default_video_provider: Literal["jitsi", "daily"] = "jitsi"
    room_name_prefix: str = "athena-session"
    jitsi_base_url: str = "https://meet.jit.si"
    daily_api_key: Optional[SecretStr] = Field(
        default=None,
        description="Daily REST API key; when unset Daily URLs are derived locally",
    )
    daily_base_url: str = "https://api.daily.co/v1"
    daily_subdomain: str = "athena"
    daily_room_expiry_hours: int = 24

    # Booking rules
    min_session_duration_minutes: int = 15
    default_currency: str = "USD"
    reminder_window_minutes: int = 60

    # Creator session settings applied until a creator saves their own
    default_session_durations: List[int] = Field(default_factory=lambda: [30, 60])
    default_session_duration_minutes: int = 60
    default_buffer_minutes: int = 0
    default_minimum_notice_hours: int = 0
    default_max_advance_booking_days: Optional[int] = None
    default_creator_timezone: str = "UTC"
    max_slot_search_days: int = 90

    # Per-creator booking lock
    session_lock_redis_url: Optional[str] = Field(
        default=None,
        description="Redis URL for the cross-process booking lock; process-local lock only when unset",
    )
    session_lock_namespace: str = "athena"
    session_lock_ttl_seconds: int = 30
    session_lock_acquire_timeout_seconds: float = 5.0

    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("CI") else None,
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("jitsi_base_url", "daily_base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("min_session_duration_minutes")
    @classmethod
    def _validate_min_duration(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("min_session_duration_minutes must be positive")
        return value

    @field_validator("default_creator_timezone")
    @classmethod
    def _validate_timezone(cls, value: str) -> str:
        if value not in pytz.all_timezones_set:
            raise ValueError(f"Unknown timezone: {value}")
        return value


settings = Settings()
if is_running_tests():
    settings.is_testing = True
