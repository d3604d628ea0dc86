"""External service integrations for the Athena session engine."""

from .daily_client import DailyClient, DailyError, FakeDailyClient

__all__ = ["DailyClient", "DailyError", "FakeDailyClient"]
