"""
Request DTOs for authentication endpoints.

JSON bodies use camelCase keys (``fullName``, ``deviceFingerprint``); the
alias generator maps them onto snake_case attributes.

SignupRequest        — POST /auth/signup
VerifyEmailRequest   — POST /auth/verify-email
ResendOtpRequest     — POST /auth/resend-otp
LoginRequest         — POST /auth/login
DeviceInfoPayload    — nested in VerifyDeviceRequest
VerifyDeviceRequest  — POST /auth/verify-device
OnboardingRequest    — POST /auth/onboarding

Text fields default to "" so that missing and blank values reach the
service layer, which reports them with one consistent message.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from schemas.models.otp import OtpPurpose


class SignupRequest(BaseModel):
    """Request body for POST /auth/signup."""

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    email: str = ""
    password: str = ""
    full_name: str = ""


class VerifyEmailRequest(BaseModel):
    """Request body for POST /auth/verify-email.

    ``otp`` is the 6-digit code sent to the user's email address.
    """

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    email: str = ""
    otp: str = ""


class ResendOtpRequest(BaseModel):
    """Request body for POST /auth/resend-otp.

    ``type`` must name a known purpose; anything else is a 400 rather than a
    challenge that could never be verified.
    """

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    email: str = ""
    type: OtpPurpose = OtpPurpose.EMAIL_VERIFICATION


class LoginRequest(BaseModel):
    """Request body for POST /auth/login."""

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    email: str = ""
    password: str = ""
    device_fingerprint: str = ""
    remember_device: bool = False


class DeviceInfoPayload(BaseModel):
    """Client-reported device metadata. Informational only."""

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    user_agent: str = ""
    browser: str = ""
    os: str = ""
    ip: str = ""


class VerifyDeviceRequest(BaseModel):
    """Request body for POST /auth/verify-device."""

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    email: str = ""
    otp: str = ""
    device_fingerprint: str = ""
    device_info: DeviceInfoPayload = DeviceInfoPayload()
    # None falls back to the choice sent with /auth/login
    remember_device: Optional[bool] = None


class OnboardingRequest(BaseModel):
    """Request body for POST /auth/onboarding."""

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    full_name: str = ""
    bio: str = ""
    native_language: str = ""
    learning_language: str = ""
    location: str = ""
    profile_pic: str = ""
