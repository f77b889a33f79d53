"""
FastAPI dependency providers.

All injectable dependencies are defined here as plain functions used with
FastAPI's Depends() system. Long-lived collaborators (database handle, email
provider, chat directory, OAuth client) are created once by the app
lifespan and read from app.state; repositories and services are cheap
per-request wrappers around them.
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import Depends, Request

from config import AppSettings
from errors import UnauthenticatedError
from infrastructure.chat.protocol import ChatDirectory
from infrastructure.email.protocol import EmailProvider
from repositories.device_repository import TrustedDeviceRepository
from repositories.otp_repository import OtpRepository
from repositories.user_repository import UserRepository
from schemas.models.user import UserDoc
from services.credential_service import CredentialService
from services.device_service import TrustedDeviceService
from services.federated_service import FederatedIdentityService
from services.login_service import LoginService
from services.otp_service import OtpService
from services.registration_service import RegistrationService
from services.session_service import SessionService


def get_settings(request: Request) -> AppSettings:
    """Return the AppSettings instance stored on app.state."""
    return request.app.state.settings


async def get_db(request: Request):
    """Return the async MongoDB database from app.state."""
    return request.app.state.db


def get_email_provider(request: Request) -> EmailProvider:
    return request.app.state.email_provider


def get_chat_directory(request: Request) -> Optional[ChatDirectory]:
    return getattr(request.app.state, "chat_directory", None)


def get_oauth_providers(request: Request) -> dict[str, Any]:
    return getattr(request.app.state, "oauth_providers", None) or {}


# ── Repositories ─────────────────────────────────────────────────────────────


async def get_user_repo(db=Depends(get_db)) -> UserRepository:
    return UserRepository(db)


async def get_otp_repo(db=Depends(get_db)) -> OtpRepository:
    return OtpRepository(db)


async def get_device_repo(db=Depends(get_db)) -> TrustedDeviceRepository:
    return TrustedDeviceRepository(db)


# ── Services ─────────────────────────────────────────────────────────────────


def get_session_service(request: Request) -> SessionService:
    return request.app.state.session_service


def get_credential_service(
    users: UserRepository = Depends(get_user_repo),
    settings: AppSettings = Depends(get_settings),
) -> CredentialService:
    return CredentialService(users, password_min_length=settings.auth.password_min_length)


def get_otp_service(
    challenges: OtpRepository = Depends(get_otp_repo),
    settings: AppSettings = Depends(get_settings),
) -> OtpService:
    return OtpService(
        challenges,
        length=settings.auth.otp_length,
        ttl_seconds=settings.auth.otp_ttl_seconds,
    )


def get_device_service(
    devices: TrustedDeviceRepository = Depends(get_device_repo),
    settings: AppSettings = Depends(get_settings),
) -> TrustedDeviceService:
    return TrustedDeviceService(devices, ttl_days=settings.auth.trusted_device_ttl_days)


def get_registration_service(
    credentials: CredentialService = Depends(get_credential_service),
    otp: OtpService = Depends(get_otp_service),
    sessions: SessionService = Depends(get_session_service),
    email_provider: EmailProvider = Depends(get_email_provider),
    directory: Optional[ChatDirectory] = Depends(get_chat_directory),
    settings: AppSettings = Depends(get_settings),
) -> RegistrationService:
    return RegistrationService(
        credentials,
        otp,
        sessions,
        email_provider,
        directory=directory,
        directory_timeout=settings.chat.chat_sync_timeout_seconds,
    )


def get_login_service(
    credentials: CredentialService = Depends(get_credential_service),
    otp: OtpService = Depends(get_otp_service),
    devices: TrustedDeviceService = Depends(get_device_service),
    sessions: SessionService = Depends(get_session_service),
    email_provider: EmailProvider = Depends(get_email_provider),
) -> LoginService:
    return LoginService(credentials, otp, devices, sessions, email_provider)


def get_federated_service(
    credentials: CredentialService = Depends(get_credential_service),
    sessions: SessionService = Depends(get_session_service),
    directory: Optional[ChatDirectory] = Depends(get_chat_directory),
    settings: AppSettings = Depends(get_settings),
) -> FederatedIdentityService:
    return FederatedIdentityService(
        credentials,
        sessions,
        directory=directory,
        directory_timeout=settings.chat.chat_sync_timeout_seconds,
    )


# ── Auth ─────────────────────────────────────────────────────────────────────


def _extract_token(request: Request, cookie_name: str) -> Optional[str]:
    token = request.cookies.get(cookie_name)
    if token:
        return token
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:].strip() or None
    return None


async def get_current_user(
    request: Request,
    sessions: SessionService = Depends(get_session_service),
    credentials: CredentialService = Depends(get_credential_service),
) -> UserDoc:
    """Resolve the session token to a live, verified user or raise 401."""
    user_id = sessions.validate(_extract_token(request, sessions.cookie_name))
    user = await credentials.get_by_id(user_id)
    if user is None:
        raise UnauthenticatedError("Unauthorized - User not found")
    if not user.is_email_verified:
        raise UnauthenticatedError("Unauthorized - Email not verified")
    request.state.user_id = user.user_id
    return user
