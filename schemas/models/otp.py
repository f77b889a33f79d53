"""
OTP challenge document model.

Maps to the `otp_challenges` MongoDB collection.

One document per (email, purpose): issuing a new code replaces the previous
document in place. code_hash stores SHA-256(code); the plain code is never
stored. consumed flips to True exactly once, on successful verification.
remember_device carries the remember-this-device choice made at login over
to the device_verification step.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from schemas.models.base import MongoBaseModel


class OtpPurpose(str, Enum):
    EMAIL_VERIFICATION = "email_verification"
    DEVICE_VERIFICATION = "device_verification"


class OtpChallengeDoc(MongoBaseModel):
    """Document model for the `otp_challenges` collection."""

    email: str
    code_hash: str
    purpose: OtpPurpose
    remember_device: bool = False
    consumed: bool = False
    consumed_at: Optional[datetime] = None
    expires_at: datetime
    created_at: Optional[datetime] = None

    def to_mongo(self) -> dict:
        data = super().to_mongo()
        data["purpose"] = self.purpose.value
        return data
