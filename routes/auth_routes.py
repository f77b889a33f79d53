"""
Auth routes: registration, password login with device step-up, session
management and onboarding.

Handlers stay thin. Services raise AppError subclasses and the global
handlers in errors.py turn them into JSON, so nothing here catches errors.

POST   /auth/signup         — create a pending account, mail the code (201)
POST   /auth/verify-email   — consume the email code, start a session
POST   /auth/resend-otp     — re-issue a code for a purpose
POST   /auth/login          — session, or a device step-up
POST   /auth/verify-device  — consume the device code, start a session
POST   /auth/logout         — clear the session cookie
GET    /auth/me             — current user
POST   /auth/onboarding     — complete the profile
GET    /auth/devices        — trusted devices of the current user
DELETE /auth/devices        — revoke all trusted devices
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from config import AppSettings
from dependencies import (
    get_chat_directory,
    get_credential_service,
    get_current_user,
    get_device_service,
    get_login_service,
    get_registration_service,
    get_session_service,
    get_settings,
)
from schemas.dto.requests.auth import (
    DeviceInfoPayload,
    LoginRequest,
    OnboardingRequest,
    ResendOtpRequest,
    SignupRequest,
    VerifyDeviceRequest,
    VerifyEmailRequest,
)
from schemas.dto.responses.auth import (
    AuthResponse,
    DeviceListResponse,
    RevokeDevicesResponse,
    SignupResponse,
    StepUpResponse,
    TrustedDeviceResponse,
    UserProfileResponse,
)
from schemas.dto.responses.common import MessageResponse
from schemas.models.device import DeviceInfo
from schemas.models.user import UserDoc
from services.credential_service import CredentialService
from services.device_service import TrustedDeviceService
from services.directory_sync import sync_user_to_directory
from services.login_service import LoginService
from services.registration_service import RegistrationService
from services.session_service import SessionService
from shared.ip_utils import get_client_ip
from shared.user_agent import parse_user_agent

router = APIRouter(prefix="/auth", tags=["auth"])


def _json(model, status_code: int = 200) -> JSONResponse:
    return JSONResponse(
        status_code=status_code, content=model.model_dump(mode="json", by_alias=True)
    )


def _auth_response(user: UserDoc) -> JSONResponse:
    return _json(AuthResponse(user=UserProfileResponse.from_doc(user)))


def resolve_device_info(payload: DeviceInfoPayload, request: Request) -> DeviceInfo:
    """Fill in whatever device metadata the client left out from the request."""
    user_agent = payload.user_agent or request.headers.get("User-Agent", "")
    browser, os_name = payload.browser, payload.os
    if not browser or not os_name:
        parsed = parse_user_agent(user_agent)
        browser = browser or parsed.browser
        os_name = os_name or parsed.os
    return DeviceInfo(
        user_agent=user_agent,
        browser=browser,
        os=os_name,
        ip=payload.ip or get_client_ip(request),
    )


@router.post("/signup", status_code=201)
async def signup(
    body: SignupRequest,
    registration: RegistrationService = Depends(get_registration_service),
) -> JSONResponse:
    result = await registration.signup(body.email, body.password, body.full_name)
    return _json(
        SignupResponse(
            message="Account created. Please check your email for the verification code.",
            user_id=result.user.user_id,
            email=result.user.email,
        ),
        status_code=201,
    )


@router.post("/verify-email")
async def verify_email(
    body: VerifyEmailRequest,
    registration: RegistrationService = Depends(get_registration_service),
    sessions: SessionService = Depends(get_session_service),
) -> JSONResponse:
    result = await registration.verify_email(body.email, body.otp)
    resp = _auth_response(result.user)
    sessions.set_session_cookie(resp, result.token)
    return resp


@router.post("/resend-otp")
async def resend_otp(
    body: ResendOtpRequest,
    registration: RegistrationService = Depends(get_registration_service),
) -> JSONResponse:
    await registration.resend_otp(body.email, body.type)
    return _json(MessageResponse(success=True, message="Verification code sent"))


@router.post("/login")
async def login(
    body: LoginRequest,
    login_service: LoginService = Depends(get_login_service),
    sessions: SessionService = Depends(get_session_service),
) -> JSONResponse:
    result = await login_service.login(
        body.email, body.password, body.device_fingerprint, remember_device=body.remember_device
    )
    if result.requires_device_verification:
        return _json(
            StepUpResponse(
                email=result.user.email,
                message="New device detected. Please check your email for the verification code.",
            )
        )
    resp = _auth_response(result.user)
    sessions.set_session_cookie(resp, result.token)
    return resp


@router.post("/verify-device")
async def verify_device(
    body: VerifyDeviceRequest,
    request: Request,
    login_service: LoginService = Depends(get_login_service),
    sessions: SessionService = Depends(get_session_service),
) -> JSONResponse:
    result = await login_service.verify_device(
        body.email,
        body.otp,
        body.device_fingerprint,
        resolve_device_info(body.device_info, request),
        remember_device=body.remember_device,
    )
    resp = _auth_response(result.user)
    sessions.set_session_cookie(resp, result.token)
    return resp


@router.post("/logout")
async def logout(sessions: SessionService = Depends(get_session_service)) -> JSONResponse:
    resp = _json(MessageResponse(success=True, message="Logout successful"))
    sessions.clear_session_cookie(resp)
    return resp


@router.get("/me")
async def me(user: UserDoc = Depends(get_current_user)) -> JSONResponse:
    return _auth_response(user)


@router.post("/onboarding")
async def onboarding(
    body: OnboardingRequest,
    user: UserDoc = Depends(get_current_user),
    credentials: CredentialService = Depends(get_credential_service),
    directory=Depends(get_chat_directory),
    settings: AppSettings = Depends(get_settings),
) -> JSONResponse:
    updated = await credentials.complete_onboarding(
        user,
        full_name=body.full_name,
        bio=body.bio,
        native_language=body.native_language,
        learning_language=body.learning_language,
        location=body.location,
        profile_pic=body.profile_pic or None,
    )
    await sync_user_to_directory(directory, updated, settings.chat.chat_sync_timeout_seconds)
    return _auth_response(updated)


@router.get("/devices")
async def list_devices(
    user: UserDoc = Depends(get_current_user),
    devices: TrustedDeviceService = Depends(get_device_service),
) -> JSONResponse:
    trusted = await devices.list_devices(user.id)
    return _json(
        DeviceListResponse(devices=[TrustedDeviceResponse.from_doc(d) for d in trusted])
    )


@router.delete("/devices")
async def revoke_devices(
    user: UserDoc = Depends(get_current_user),
    devices: TrustedDeviceService = Depends(get_device_service),
) -> JSONResponse:
    revoked = await devices.revoke_all(user.id)
    return _json(RevokeDevicesResponse(revoked=revoked))
