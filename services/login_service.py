"""
Password login gated by a device-trust check.

A trusted (user, fingerprint) pair gets a session straight away. Anything
else is stepped up with a device_verification OTP, and the session is only
minted once that code comes back through verify_device().
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from errors import (
    EmailDeliveryError,
    InvalidCredentialsError,
    NotFoundError,
    UnverifiedEmailError,
)
from infrastructure.email.protocol import EmailProvider
from schemas.models.device import DeviceInfo
from schemas.models.otp import OtpPurpose
from schemas.models.user import UserDoc
from services.credential_service import CredentialService
from services.device_service import TrustedDeviceService
from services.otp_service import OtpService
from services.registration_service import AuthResult
from services.session_service import SessionService
from shared.logging import get_logger

log = get_logger(__name__)

INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"
UNVERIFIED_EMAIL_MESSAGE = "Please verify your email before logging in"


class LoginStatus(str, Enum):
    AUTHENTICATED = "authenticated"
    STEP_UP_REQUIRED = "step_up_required"


@dataclass(frozen=True)
class LoginResult:
    status: LoginStatus
    user: UserDoc
    token: Optional[str] = None

    @property
    def requires_device_verification(self) -> bool:
        return self.status is LoginStatus.STEP_UP_REQUIRED


class LoginService:
    def __init__(
        self,
        credentials: CredentialService,
        otp: OtpService,
        devices: TrustedDeviceService,
        sessions: SessionService,
        email_provider: EmailProvider,
    ) -> None:
        self._credentials = credentials
        self._otp = otp
        self._devices = devices
        self._sessions = sessions
        self._email = email_provider

    async def login(
        self, email: str, password: str, fingerprint: str, remember_device: bool = False
    ) -> LoginResult:
        """Check credentials, then decide between a session and a step-up.

        remember_device is stored on the device challenge and becomes the
        default for the verify_device() call that completes the step-up.

        Raises:
            InvalidCredentialsError: unknown email or wrong password.
            UnverifiedEmailError: the account exists but is still pending,
                whatever the password.
            EmailDeliveryError: the device code could not be sent.
        """
        user = await self._credentials.get_by_email(email)
        if user is None:
            log.warning("login_failed", reason="invalid_credentials")
            raise InvalidCredentialsError(INVALID_CREDENTIALS_MESSAGE)

        if not user.is_email_verified:
            log.warning("login_failed", user_id=user.user_id, reason="email_not_verified")
            raise UnverifiedEmailError(UNVERIFIED_EMAIL_MESSAGE, field="email")

        if not self._credentials.verify_password(user, password):
            log.warning("login_failed", user_id=user.user_id, reason="invalid_credentials")
            raise InvalidCredentialsError(INVALID_CREDENTIALS_MESSAGE)

        device = await self._devices.find_trusted(user.id, fingerprint)
        if device is not None:
            await self._devices.touch(device)
            user = await self._credentials.record_login(user)
            log.info("login_success", user_id=user.user_id, auth_method="pwd", trusted_device=True)
            return LoginResult(
                status=LoginStatus.AUTHENTICATED,
                user=user,
                token=self._sessions.issue(user.user_id, method="pwd"),
            )

        code = await self._otp.issue(
            user.email, OtpPurpose.DEVICE_VERIFICATION, remember_device=remember_device
        )
        sent = await self._email.send_otp_email(
            user.email, user.full_name, code, OtpPurpose.DEVICE_VERIFICATION
        )
        if not sent:
            log.error("otp_email_failed", user_id=user.user_id, purpose="device_verification")
            raise EmailDeliveryError("Failed to send verification code")

        log.info("login_step_up_required", user_id=user.user_id)
        return LoginResult(status=LoginStatus.STEP_UP_REQUIRED, user=user)

    async def verify_device(
        self,
        email: str,
        code: str,
        fingerprint: str,
        device_info: DeviceInfo,
        remember_device: Optional[bool] = None,
    ) -> AuthResult:
        """Consume the device code and mint a session.

        When remember_device is None the choice made at login applies.
        """
        user = await self._credentials.get_by_email(email)
        if user is None:
            raise NotFoundError("User not found", field="email")
        if not user.is_email_verified:
            raise UnverifiedEmailError(UNVERIFIED_EMAIL_MESSAGE, field="email")

        challenge = await self._otp.verify(email, code, OtpPurpose.DEVICE_VERIFICATION)
        if remember_device is None:
            remember_device = challenge.remember_device

        if remember_device:
            await self._devices.remember(user.id, fingerprint, device_info)

        user = await self._credentials.record_login(user)
        log.info(
            "login_success",
            user_id=user.user_id,
            auth_method="otp",
            device_remembered=remember_device and bool(fingerprint),
        )
        return AuthResult(user=user, token=self._sessions.issue(user.user_id, method="otp"))
