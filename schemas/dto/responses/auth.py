"""
Response DTOs for authentication endpoints.

UserProfileResponse      — public user shape (never includes password_hash)
SignupResponse           — POST /auth/signup  (201)
AuthResponse             — verify-email, verify-device, login (trusted), me, onboarding
StepUpResponse           — POST /auth/login when the device is not trusted
TrustedDeviceResponse    — entry in DeviceListResponse
DeviceListResponse       — GET /auth/devices
RevokeDevicesResponse    — DELETE /auth/devices

Route handlers serialise with ``by_alias=True`` so clients see camelCase keys.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from schemas.models.device import TrustedDeviceDoc
from schemas.models.user import UserDoc


class UserProfileResponse(BaseModel):
    """User profile returned by every endpoint that yields a user."""

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    id: str
    email: str
    full_name: str
    profile_pic: str = ""
    bio: str = ""
    native_language: str = ""
    learning_language: str = ""
    location: str = ""
    is_email_verified: bool
    is_onboarded: bool
    auth_providers: list[str] = []
    created_at: Optional[datetime] = None

    @classmethod
    def from_doc(cls, user: UserDoc) -> "UserProfileResponse":
        return cls(
            id=user.user_id,
            email=user.email,
            full_name=user.full_name,
            profile_pic=user.profile_pic,
            bio=user.bio,
            native_language=user.native_language,
            learning_language=user.learning_language,
            location=user.location,
            is_email_verified=user.is_email_verified,
            is_onboarded=user.is_onboarded,
            auth_providers=[entry.provider for entry in user.auth_providers],
            created_at=user.created_at,
        )


class SignupResponse(BaseModel):
    """Response body for POST /auth/signup (201). No session is issued yet."""

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    success: bool = True
    message: str
    user_id: str
    email: str
    requires_verification: bool = True


class AuthResponse(BaseModel):
    """Response body whenever a session cookie accompanies the user."""

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    success: bool = True
    user: UserProfileResponse


class StepUpResponse(BaseModel):
    """Response body for POST /auth/login on an unrecognised device."""

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    success: bool = True
    requires_device_verification: bool = True
    email: str
    message: str


class TrustedDeviceResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    id: str
    browser: str = ""
    os: str = ""
    ip: str = ""
    last_used_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_doc(cls, device: TrustedDeviceDoc) -> "TrustedDeviceResponse":
        return cls(
            id=str(device.id),
            browser=device.device_info.browser,
            os=device.device_info.os,
            ip=device.device_info.ip,
            last_used_at=device.last_used_at,
            expires_at=device.expires_at,
            created_at=device.created_at,
        )


class DeviceListResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    success: bool = True
    devices: list[TrustedDeviceResponse]


class RevokeDevicesResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    success: bool = True
    revoked: int
