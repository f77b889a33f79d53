"""
Trusted device registry.

Trust is an exact match on the client-computed fingerprint string within a
sliding window: every trusted login pushes expires_at forward by the
configured number of days. The registry never inspects how the fingerprint
was derived.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Callable, Optional

from bson import ObjectId

from repositories.device_repository import TrustedDeviceRepository
from schemas.models.base import utcnow
from schemas.models.device import DeviceInfo, TrustedDeviceDoc
from shared.logging import get_logger

log = get_logger(__name__)

TRUSTED_DEVICE_TTL_DAYS = 30


class TrustedDeviceService:
    def __init__(
        self,
        devices: TrustedDeviceRepository,
        ttl_days: int = TRUSTED_DEVICE_TTL_DAYS,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._devices = devices
        self._ttl = timedelta(days=ttl_days)
        self._clock = clock

    async def find_trusted(
        self, user_id: ObjectId, fingerprint: str
    ) -> Optional[TrustedDeviceDoc]:
        if not fingerprint:
            return None
        return await self._devices.find_active(user_id, fingerprint, self._clock())

    async def is_trusted(self, user_id: ObjectId, fingerprint: str) -> bool:
        return await self.find_trusted(user_id, fingerprint) is not None

    async def remember(
        self, user_id: ObjectId, fingerprint: str, device_info: DeviceInfo
    ) -> None:
        """Trust (user, fingerprint). Safe to repeat; the pair stays unique."""
        if not fingerprint:
            log.warning("device_remember_skipped", user_id=str(user_id), reason="empty_fingerprint")
            return
        now = self._clock()
        await self._devices.upsert(
            user_id, fingerprint, device_info, now, now + self._ttl
        )
        log.info(
            "device_trusted",
            user_id=str(user_id),
            browser=device_info.browser,
            os=device_info.os,
        )

    async def touch(self, device: TrustedDeviceDoc) -> None:
        now = self._clock()
        await self._devices.touch(device.id, now, now + self._ttl)

    async def list_devices(self, user_id: ObjectId) -> list[TrustedDeviceDoc]:
        return await self._devices.list_for_user(user_id, self._clock())

    async def revoke_all(self, user_id: ObjectId) -> int:
        revoked = await self._devices.delete_for_user(user_id)
        log.info("devices_revoked", user_id=str(user_id), count=revoked)
        return revoked
