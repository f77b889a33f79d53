"""
In-memory stand-ins for the repositories and external providers.

They mirror the query semantics of the real repositories (filters on
consumed/expiry, uniqueness of keys) closely enough that services can be
exercised end to end without MongoDB, email or chat providers.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from bson import ObjectId
from pymongo.errors import DuplicateKeyError

from schemas.models.device import DeviceInfo, TrustedDeviceDoc
from schemas.models.otp import OtpChallengeDoc, OtpPurpose
from schemas.models.user import AuthProviderEntry, UserDoc

TEST_JWT_SECRET = "test-secret-key-that-is-long-enough-for-hs256"
DEFAULT_NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = DEFAULT_NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: Any) -> None:
        self.now += timedelta(**kwargs)


class FakeUserRepository:
    def __init__(self) -> None:
        self.docs: dict[ObjectId, UserDoc] = {}

    async def find_by_email(self, email: str) -> Optional[UserDoc]:
        return next((u for u in self.docs.values() if u.email == email), None)

    async def find_by_id(self, user_id: str) -> Optional[UserDoc]:
        if not ObjectId.is_valid(user_id):
            return None
        return self.docs.get(ObjectId(user_id))

    async def insert(self, user: UserDoc) -> UserDoc:
        if await self.find_by_email(user.email) is not None:
            raise DuplicateKeyError("E11000 duplicate key error: email")
        stored = user.model_copy(update={"id": ObjectId()})
        self.docs[stored.id] = stored
        return stored

    async def delete(self, user_id: ObjectId) -> bool:
        return self.docs.pop(user_id, None) is not None

    async def update_fields(self, user_id: ObjectId, fields: dict) -> Optional[UserDoc]:
        user = self.docs.get(user_id)
        if user is None:
            return None
        updated = user.model_copy(update=fields)
        self.docs[user_id] = updated
        return updated

    async def add_auth_provider(
        self, user_id: ObjectId, entry: AuthProviderEntry, now: datetime
    ) -> Optional[UserDoc]:
        user = self.docs.get(user_id)
        if user is None or user.is_linked_to(entry.provider):
            return None
        return await self.update_fields(
            user_id,
            {"auth_providers": [*user.auth_providers, entry], "updated_at": now},
        )


class FakeOtpRepository:
    def __init__(self) -> None:
        self.docs: dict[tuple[str, str], OtpChallengeDoc] = {}

    async def replace(self, challenge: OtpChallengeDoc) -> None:
        key = (challenge.email, challenge.purpose.value)
        existing = self.docs.get(key)
        self.docs[key] = challenge.model_copy(
            update={"id": existing.id if existing else ObjectId()}
        )

    async def consume(
        self, email: str, purpose: OtpPurpose, code_hash: str, now: datetime
    ) -> Optional[OtpChallengeDoc]:
        doc = self.docs.get((email, purpose.value))
        if (
            doc is None
            or doc.code_hash != code_hash
            or doc.consumed
            or doc.expires_at <= now
        ):
            return None
        consumed = doc.model_copy(update={"consumed": True, "consumed_at": now})
        self.docs[(email, purpose.value)] = consumed
        return consumed

    def get(self, email: str, purpose: OtpPurpose) -> Optional[OtpChallengeDoc]:
        return self.docs.get((email, purpose.value))


class FakeDeviceRepository:
    def __init__(self) -> None:
        self.docs: dict[tuple[ObjectId, str], TrustedDeviceDoc] = {}

    async def find_active(
        self, user_id: ObjectId, fingerprint: str, now: datetime
    ) -> Optional[TrustedDeviceDoc]:
        doc = self.docs.get((user_id, fingerprint))
        if doc is None or doc.expires_at <= now:
            return None
        return doc

    async def upsert(
        self,
        user_id: ObjectId,
        fingerprint: str,
        device_info: DeviceInfo,
        now: datetime,
        expires_at: datetime,
    ) -> None:
        existing = self.docs.get((user_id, fingerprint))
        self.docs[(user_id, fingerprint)] = TrustedDeviceDoc(
            _id=existing.id if existing else ObjectId(),
            user_id=user_id,
            device_fingerprint=fingerprint,
            device_info=device_info,
            last_used_at=now,
            expires_at=expires_at,
            created_at=existing.created_at if existing else now,
            updated_at=now,
        )

    async def touch(self, device_id: ObjectId, now: datetime, expires_at: datetime) -> None:
        for key, doc in self.docs.items():
            if doc.id == device_id:
                self.docs[key] = doc.model_copy(
                    update={"last_used_at": now, "expires_at": expires_at, "updated_at": now}
                )

    async def list_for_user(self, user_id: ObjectId, now: datetime) -> list[TrustedDeviceDoc]:
        devices = [
            d for (uid, _), d in self.docs.items() if uid == user_id and d.expires_at > now
        ]
        return sorted(devices, key=lambda d: d.last_used_at, reverse=True)

    async def delete_for_user(self, user_id: ObjectId) -> int:
        keys = [key for key in self.docs if key[0] == user_id]
        for key in keys:
            del self.docs[key]
        return len(keys)


class FakeEmailProvider:
    """Records every message instead of sending it."""

    def __init__(self, succeed: bool = True) -> None:
        self.succeed = succeed
        self.otp_emails: list[dict] = []
        self.welcome_emails: list[dict] = []

    async def send_otp_email(
        self, email: str, user_name: Optional[str], otp_code: str, purpose: OtpPurpose
    ) -> bool:
        self.otp_emails.append(
            {"email": email, "user_name": user_name, "code": otp_code, "purpose": purpose}
        )
        return self.succeed

    async def send_welcome_email(self, email: str, user_name: Optional[str]) -> bool:
        self.welcome_emails.append({"email": email, "user_name": user_name})
        return self.succeed

    def last_code(self, purpose: Optional[OtpPurpose] = None) -> str:
        for sent in reversed(self.otp_emails):
            if purpose is None or sent["purpose"] == purpose:
                return sent["code"]
        raise AssertionError("no OTP email was sent")

    def count(self, purpose: OtpPurpose) -> int:
        return sum(1 for sent in self.otp_emails if sent["purpose"] == purpose)


class FakeChatDirectory:
    def __init__(self, succeed: bool = True, error: Optional[Exception] = None) -> None:
        self.succeed = succeed
        self.error = error
        self.upserts: list[dict] = []

    async def upsert_user(self, user_id: str, name: str, image: str) -> bool:
        if self.error is not None:
            raise self.error
        self.upserts.append({"id": user_id, "name": name, "image": image})
        return self.succeed
