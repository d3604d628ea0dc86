"""Daily.co Video Platform Integration Client.

Handles room creation and lookup against the Daily REST API for sessions
whose requested provider is ``daily`` and a Daily API key is configured.
"""

from __future__ import annotations

import logging
import time
from typing import Any, cast
import uuid

import httpx
from pydantic import SecretStr

logger = logging.getLogger(__name__)


class DailyError(RuntimeError):
    """Raised when the Daily API responds with an error or is unreachable."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        *,
        details: Any | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details


class DailyClient:
    """HTTP client for Daily REST API."""

    def __init__(
        self,
        *,
        api_key: str | SecretStr,
        base_url: str = "https://api.daily.co/v1",
        room_expiry_hours: int = 24,
        timeout: float = 10.0,
    ) -> None:
        self._api_key = api_key.get_secret_value() if isinstance(api_key, SecretStr) else api_key
        self._base_url = base_url.rstrip("/")
        self._room_expiry_hours = room_expiry_hours
        self._timeout = timeout

    def _request(
        self,
        method: str,
        path: str,
        *,
        json_body: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Make an authenticated request to the Daily API."""
        url = f"{self._base_url}/{path.lstrip('/')}"
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

        try:
            with httpx.Client(timeout=self._timeout) as client:
                response = client.request(method, url, headers=headers, json=json_body)
        except httpx.TransportError as exc:
            logger.error("Daily API unreachable for %s %s: %s", method, path, exc)
            raise DailyError(
                message=f"Daily API unreachable: {exc}",
                status_code=None,
            ) from exc

        if response.status_code >= 400:
            error_body: dict[str, Any] = {}
            try:
                parsed_body = response.json()
                if isinstance(parsed_body, dict):
                    error_body = parsed_body
                else:
                    error_body = {"raw": response.text[:500]}
            except ValueError:
                error_body = {"raw": response.text[:500]}

            message = error_body.get("info") or error_body.get("error") or response.text

            logger.error(
                "Daily API error %s for %s %s: %s",
                response.status_code,
                method,
                path,
                response.text[:500],
            )
            raise DailyError(
                message=message,
                status_code=response.status_code,
                details=error_body.get("error"),
            )

        return cast(dict[str, Any], response.json())

    def create_room(self, *, name: str, privacy: str = "private") -> dict[str, Any]:
        """Create a Daily room that expires ``room_expiry_hours`` from now.

        The response carries ``name`` and ``url``; ``url`` is the join URL.
        """
        body: dict[str, Any] = {
            "name": name,
            "privacy": privacy,
            "properties": {"exp": int(time.time()) + self._room_expiry_hours * 3600},
        }
        return self._request("POST", "rooms", json_body=body)

    def get_room(self, name: str) -> dict[str, Any]:
        """Get room details by room name."""
        return self._request("GET", f"rooms/{name}")


class FakeDailyClient:
    """In-memory stub for testing/non-production environments."""

    def __init__(self, subdomain: str = "athena", **kwargs: Any) -> None:
        self._subdomain = subdomain
        self._calls: list[dict[str, Any]] = []
        self._errors: dict[str, DailyError] = {}

    def set_error(self, method: str, error: DailyError) -> None:
        """Inject a method-specific error for deterministic failure testing."""
        self._errors[method] = error

    def clear_errors(self) -> None:
        self._errors.clear()

    def _raise_if_injected(self, method: str) -> None:
        error = self._errors.get(method)
        if error is not None:
            raise error

    def create_room(self, *, name: str, **kwargs: Any) -> dict[str, Any]:
        self._calls.append({"method": "create_room", "name": name, **kwargs})
        self._raise_if_injected("create_room")
        return {
            "id": str(uuid.uuid4()),
            "name": name,
            "url": f"https://{self._subdomain}.daily.co/{name}",
            "privacy": kwargs.get("privacy", "private"),
        }

    def get_room(self, name: str) -> dict[str, Any]:
        self._calls.append({"method": "get_room", "name": name})
        self._raise_if_injected("get_room")
        return {"name": name, "url": f"https://{self._subdomain}.daily.co/{name}"}
