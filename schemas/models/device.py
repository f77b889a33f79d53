"""
Trusted device document model.

Maps to the `trusted_devices` MongoDB collection.

(user_id, device_fingerprint) is unique. device_info is informational only;
the trust decision is an exact match on the fingerprint string plus the
expires_at window, which slides forward on every trusted login.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from schemas.models.base import MongoBaseModel, PyObjectId


class DeviceInfo(BaseModel):
    user_agent: str = ""
    browser: str = ""
    os: str = ""
    ip: str = ""


class TrustedDeviceDoc(MongoBaseModel):
    """Document model for the `trusted_devices` collection."""

    user_id: PyObjectId
    device_fingerprint: str
    device_info: DeviceInfo = DeviceInfo()
    last_used_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
