"""
Registration flow: Unregistered -> PendingEmailVerification -> Verified.

No session token exists for an account until its email OTP has been
consumed; signup only creates the pending account and mails the code.
"""

from __future__ import annotations

from dataclasses import dataclass

from errors import EmailDeliveryError
from infrastructure.chat.protocol import ChatDirectory
from infrastructure.email.protocol import EmailProvider
from schemas.models.otp import OtpPurpose
from schemas.models.user import UserDoc
from services.credential_service import CredentialService
from services.directory_sync import DEFAULT_SYNC_TIMEOUT_SECONDS, sync_user_to_directory
from services.otp_service import OtpService
from services.session_service import SessionService
from shared.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class SignupResult:
    user: UserDoc


@dataclass(frozen=True)
class AuthResult:
    """An authenticated user and the session token minted for them."""

    user: UserDoc
    token: str


class RegistrationService:
    def __init__(
        self,
        credentials: CredentialService,
        otp: OtpService,
        sessions: SessionService,
        email_provider: EmailProvider,
        directory: ChatDirectory | None = None,
        directory_timeout: float = DEFAULT_SYNC_TIMEOUT_SECONDS,
    ) -> None:
        self._credentials = credentials
        self._otp = otp
        self._sessions = sessions
        self._email = email_provider
        self._directory = directory
        self._directory_timeout = directory_timeout

    async def signup(self, email: str, password: str, full_name: str) -> SignupResult:
        """Create a pending account and mail its verification code.

        Raises:
            ValidationError, DuplicateEmailError: from the credential store.
            EmailDeliveryError: the code could not be sent. The account is
                removed again so the same email can sign up on a retry.
        """
        user = await self._credentials.create_user(email, password, full_name)
        try:
            await self._send_code(user, OtpPurpose.EMAIL_VERIFICATION)
        except EmailDeliveryError:
            await self._credentials.discard_pending_user(user)
            raise
        log.info("signup_completed", user_id=user.user_id)
        return SignupResult(user=user)

    async def verify_email(self, email: str, code: str) -> AuthResult:
        user = await self._credentials.require_by_email(email)
        await self._otp.verify(email, code, OtpPurpose.EMAIL_VERIFICATION)

        user = await self._credentials.mark_email_verified(user)
        await sync_user_to_directory(self._directory, user, self._directory_timeout)

        if not await self._email.send_welcome_email(user.email, user.full_name):
            log.warning("welcome_email_failed", user_id=user.user_id)

        token = self._sessions.issue(user.user_id, method="otp")
        return AuthResult(user=user, token=token)

    async def resend_otp(self, email: str, purpose: OtpPurpose) -> None:
        user = await self._credentials.require_by_email(email)
        await self._send_code(user, purpose)
        log.info("otp_resent", user_id=user.user_id, purpose=purpose.value)

    async def _send_code(self, user: UserDoc, purpose: OtpPurpose) -> None:
        code = await self._otp.issue(user.email, purpose)
        sent = await self._email.send_otp_email(user.email, user.full_name, code, purpose)
        if not sent:
            log.error("otp_email_failed", user_id=user.user_id, purpose=purpose.value)
            raise EmailDeliveryError("Failed to send verification email")
