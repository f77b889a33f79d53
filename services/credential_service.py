"""
Credential store: user records and password verification.

Every account path goes through create_user(), which owns input validation,
duplicate detection and password hashing. Raw passwords are hashed before
they reach the repository and are never logged.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional

from pymongo.errors import DuplicateKeyError

from errors import DuplicateEmailError, NotFoundError, ValidationError
from repositories.user_repository import UserRepository
from schemas.models.base import utcnow
from schemas.models.user import AuthProviderEntry, UserDoc
from shared.crypto import hash_password, verify_password as _verify_hash
from shared.generators import generate_avatar_url
from shared.logging import get_logger
from shared.validators import (
    DEFAULT_PASSWORD_MIN_LENGTH,
    missing_fields,
    validate_email,
    validate_password,
)

log = get_logger(__name__)


class CredentialService:
    def __init__(
        self,
        users: UserRepository,
        password_min_length: int = DEFAULT_PASSWORD_MIN_LENGTH,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._users = users
        self._password_min_length = password_min_length
        self._clock = clock

    async def create_user(
        self,
        email: str,
        password: Optional[str],
        full_name: str,
        profile_pic: Optional[str] = None,
        email_preverified: bool = False,
        provider: Optional[AuthProviderEntry] = None,
    ) -> UserDoc:
        """Create an account.

        Password signups need email, password and full name. Pre-verified
        (federated) accounts carry no password at all.

        Raises:
            ValidationError: missing fields, bad email shape, short password.
            DuplicateEmailError: the email is already registered.
        """
        if email_preverified:
            missing = missing_fields({"email": email, "fullName": full_name})
        else:
            missing = missing_fields(
                {"email": email, "password": password, "fullName": full_name}
            )
        if missing:
            raise ValidationError(
                "All fields are required", field=missing[0], details={"missing": missing}
            )

        if not validate_email(email):
            raise ValidationError("Invalid email format", field="email")

        if not email_preverified and not validate_password(
            password or "", self._password_min_length
        ):
            raise ValidationError(
                f"Password must be at least {self._password_min_length} characters",
                field="password",
            )

        if await self._users.find_by_email(email) is not None:
            log.warning("signup_rejected", reason="email_exists")
            raise DuplicateEmailError(
                "Email already exists, please use a different one", field="email"
            )

        now = self._clock()
        user = UserDoc(
            email=email,
            full_name=full_name.strip(),
            password_hash=hash_password(password) if password else None,
            profile_pic=profile_pic or generate_avatar_url(),
            is_email_verified=email_preverified,
            auth_providers=[provider] if provider else [],
            created_at=now,
            updated_at=now,
        )
        try:
            user = await self._users.insert(user)
        except DuplicateKeyError:
            # Race: same email registered between the lookup and the insert
            log.warning("signup_rejected", reason="race_condition_duplicate")
            raise DuplicateEmailError(
                "Email already exists, please use a different one", field="email"
            )

        log.info(
            "user_created",
            user_id=user.user_id,
            auth_method=provider.provider if provider else "password",
            email_verified=user.is_email_verified,
        )
        return user

    @staticmethod
    def verify_password(user: UserDoc, candidate: str) -> bool:
        """True only if *user* has a password and *candidate* matches it."""
        if not user.has_password:
            return False
        return _verify_hash(candidate, user.password_hash)

    async def get_by_email(self, email: str) -> Optional[UserDoc]:
        if not email:
            return None
        return await self._users.find_by_email(email)

    async def get_by_id(self, user_id: str) -> Optional[UserDoc]:
        return await self._users.find_by_id(user_id)

    async def require_by_email(self, email: str) -> UserDoc:
        user = await self.get_by_email(email)
        if user is None:
            raise NotFoundError("User not found", field="email")
        return user

    async def discard_pending_user(self, user: UserDoc) -> None:
        """Remove an account that never got past signup."""
        if user.is_email_verified:
            raise ValidationError("Only pending accounts can be discarded")
        await self._users.delete(user.id)
        log.info("pending_user_discarded", user_id=user.user_id)

    async def mark_email_verified(self, user: UserDoc) -> UserDoc:
        if user.is_email_verified:
            return user
        updated = await self._users.update_fields(
            user.id, {"is_email_verified": True, "updated_at": self._clock()}
        )
        log.info("email_verified", user_id=user.user_id)
        return updated or user.model_copy(update={"is_email_verified": True})

    async def link_provider(
        self, user: UserDoc, provider: str, provider_user_id: str
    ) -> UserDoc:
        if user.is_linked_to(provider):
            return user
        now = self._clock()
        entry = AuthProviderEntry(
            provider=provider, provider_user_id=provider_user_id, linked_at=now
        )
        updated = await self._users.add_auth_provider(user.id, entry, now)
        log.info("auth_provider_linked", user_id=user.user_id, provider=provider)
        return updated or user

    async def record_login(self, user: UserDoc) -> UserDoc:
        now = self._clock()
        updated = await self._users.update_fields(user.id, {"last_login_at": now})
        return updated or user.model_copy(update={"last_login_at": now})

    async def complete_onboarding(
        self,
        user: UserDoc,
        full_name: str,
        bio: str,
        native_language: str,
        learning_language: str,
        location: str,
        profile_pic: Optional[str] = None,
    ) -> UserDoc:
        """Fill in the profile and flag the account as onboarded."""
        values = {
            "fullName": full_name,
            "bio": bio,
            "nativeLanguage": native_language,
            "learningLanguage": learning_language,
            "location": location,
        }
        missing = missing_fields(values)
        if missing:
            raise ValidationError(
                "All fields are required",
                field=missing[0],
                details={"missing": missing},
            )

        fields = {
            "full_name": full_name.strip(),
            "bio": bio.strip(),
            "native_language": native_language.strip(),
            "learning_language": learning_language.strip(),
            "location": location.strip(),
        }
        if profile_pic:
            fields["profile_pic"] = profile_pic
        fields["is_onboarded"] = True
        fields["updated_at"] = self._clock()

        updated = await self._users.update_fields(user.id, fields)
        if updated is None:
            raise NotFoundError("User not found")
        log.info("user_onboarded", user_id=user.user_id)
        return updated
