# backend/athena/services/room_provisioner.py
"""
Room Provisioner for the Athena session engine.

Produces a video-meeting room (provider, room id, join URL) for a session
entering ``confirmed``. Stateless: callers guarantee a session is
provisioned at most once by checking its stored room metadata first.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import secrets
from typing import Callable, Dict, Optional, Protocol, Union

from ..core.config import settings
from ..core.exceptions import ProvisioningException
from ..integrations.daily_client import DailyClient, DailyError
from ..models.session import VideoProvider
from ..monitoring.prometheus_metrics import prometheus_metrics

logger = logging.getLogger(__name__)


class DailyRoomBackend(Protocol):
    def create_room(self, *, name: str) -> dict: ...


@dataclass(frozen=True)
class ProvisionedRoom:
    provider: VideoProvider
    room_id: str
    join_url: str


def generate_room_id(prefix: Optional[str] = None) -> str:
    """``<prefix>-<16 hex chars>`` from 8 random bytes."""
    return f"{prefix or settings.room_name_prefix}-{secrets.token_hex(8)}"


class RoomProvisioner:
    """
    Creates rooms for the closed set of supported providers.

    Unknown or missing providers fall back to the default provider. A
    provider backend failure also falls back to the default provider; if
    that cannot produce a room either, ProvisioningException is raised.
    """

    def __init__(
        self,
        *,
        default_provider: Union[VideoProvider, str, None] = None,
        jitsi_base_url: Optional[str] = None,
        daily_client: Optional[DailyRoomBackend] = None,
        daily_subdomain: Optional[str] = None,
        room_id_factory: Optional[Callable[[], str]] = None,
    ):
        self.default_provider = VideoProvider(default_provider or settings.default_video_provider)
        self.jitsi_base_url = (jitsi_base_url or settings.jitsi_base_url).rstrip("/")
        self.daily_client = daily_client
        self.daily_subdomain = daily_subdomain or settings.daily_subdomain
        self.room_id_factory = room_id_factory or generate_room_id
        self.logger = logging.getLogger(self.__class__.__name__)

        self._handlers: Dict[VideoProvider, Callable[[str], ProvisionedRoom]] = {
            VideoProvider.JITSI: self._provision_jitsi,
            VideoProvider.DAILY: self._provision_daily,
        }

    def resolve_provider(self, provider: Union[VideoProvider, str, None]) -> VideoProvider:
        """Map a requested provider value onto a supported one."""
        if provider is None:
            return self.default_provider
        try:
            return VideoProvider(provider)
        except ValueError:
            self.logger.warning(
                "Unknown video provider %r, falling back to %s",
                provider,
                self.default_provider.value,
            )
            return self.default_provider

    def provision(
        self, provider: Union[VideoProvider, str, None], session_id: str
    ) -> ProvisionedRoom:
        """
        Create a room for ``session_id`` on the requested provider.

        Raises:
            ProvisioningException: If neither the requested nor the default
                provider could produce a room
        """
        resolved = self.resolve_provider(provider)
        try:
            room = self._handlers[resolved](session_id)
        except DailyError as exc:
            prometheus_metrics.record_room_provisioning(resolved.value, "error")
            if resolved == self.default_provider:
                raise ProvisioningException(session_id, resolved.value, exc.message) from exc
            self.logger.warning(
                "Room backend %s failed for session %s, falling back to %s: %s",
                resolved.value,
                session_id,
                self.default_provider.value,
                exc.message,
            )
            try:
                room = self._handlers[self.default_provider](session_id)
            except DailyError as fallback_exc:
                prometheus_metrics.record_room_provisioning(self.default_provider.value, "error")
                raise ProvisioningException(
                    session_id, self.default_provider.value, fallback_exc.message
                ) from fallback_exc
            prometheus_metrics.record_room_provisioning(room.provider.value, "fallback")
        else:
            prometheus_metrics.record_room_provisioning(room.provider.value, "success")

        self.logger.info(
            "Provisioned %s room %s for session %s",
            room.provider.value,
            room.room_id,
            session_id,
        )
        return room

    def _provision_jitsi(self, session_id: str) -> ProvisionedRoom:
        room_id = self.room_id_factory()
        return ProvisionedRoom(
            provider=VideoProvider.JITSI,
            room_id=room_id,
            join_url=f"{self.jitsi_base_url}/{room_id}",
        )

    def _provision_daily(self, session_id: str) -> ProvisionedRoom:
        room_id = self.room_id_factory()
        if self.daily_client is None:
            return ProvisionedRoom(
                provider=VideoProvider.DAILY,
                room_id=room_id,
                join_url=f"https://{self.daily_subdomain}.daily.co/{room_id}",
            )

        payload = self.daily_client.create_room(name=room_id)
        name = payload.get("name") or room_id
        url = payload.get("url") or f"https://{self.daily_subdomain}.daily.co/{name}"
        return ProvisionedRoom(provider=VideoProvider.DAILY, room_id=name, join_url=url)


def build_room_provisioner() -> RoomProvisioner:
    """Provisioner wired from settings; Daily REST calls only when a key is set."""
    daily_client: Optional[DailyClient] = None
    if settings.daily_api_key is not None:
        daily_client = DailyClient(
            api_key=settings.daily_api_key,
            base_url=settings.daily_base_url,
            room_expiry_hours=settings.daily_room_expiry_hours,
        )
    return RoomProvisioner(daily_client=daily_client)
