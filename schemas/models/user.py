"""
User document model.

Maps to the `users` MongoDB collection.

Two creation paths produce slightly different shapes:
- Password signup: password_hash set, is_email_verified False until the
  email OTP is confirmed
- Federated signup: no password_hash, is_email_verified True, one entry in
  auth_providers

Both paths are handled via Optional fields with sensible defaults.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from schemas.models.base import MongoBaseModel


class AuthProviderEntry(BaseModel):
    """Single entry in the user's auth_providers array."""

    provider: str
    provider_user_id: str
    linked_at: Optional[datetime] = None


class UserDoc(MongoBaseModel):
    """Document model for the `users` collection."""

    email: str
    full_name: str
    password_hash: Optional[str] = None
    profile_pic: str = ""
    bio: str = ""
    native_language: str = ""
    learning_language: str = ""
    location: str = ""
    is_email_verified: bool = False
    is_onboarded: bool = False
    auth_providers: list[AuthProviderEntry] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    last_login_at: Optional[datetime] = None

    @property
    def user_id(self) -> str:
        return str(self.id)

    @property
    def has_password(self) -> bool:
        return bool(self.password_hash)

    def is_linked_to(self, provider: str) -> bool:
        return any(entry.provider == provider for entry in self.auth_providers)
