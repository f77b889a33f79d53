"""
OTP challenge manager: time-boxed, single-use numeric codes keyed by
(email, purpose).
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Callable

from errors import InvalidOrExpiredCodeError
from repositories.otp_repository import OtpRepository
from schemas.models.base import utcnow
from schemas.models.otp import OtpChallengeDoc, OtpPurpose
from shared.crypto import hash_otp
from shared.generators import generate_otp_code
from shared.logging import get_logger

log = get_logger(__name__)

OTP_LENGTH = 6
OTP_TTL_SECONDS = 600  # 10 minutes

INVALID_CODE_MESSAGE = "Invalid or expired verification code"


class OtpService:
    def __init__(
        self,
        challenges: OtpRepository,
        length: int = OTP_LENGTH,
        ttl_seconds: int = OTP_TTL_SECONDS,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._challenges = challenges
        self._length = length
        self._ttl = timedelta(seconds=ttl_seconds)
        self._clock = clock

    @property
    def ttl_minutes(self) -> int:
        return int(self._ttl.total_seconds() // 60)

    async def issue(
        self, email: str, purpose: OtpPurpose, remember_device: bool = False
    ) -> str:
        """Create a fresh code for (email, purpose) and return it for delivery.

        Any earlier challenge for the same pair, consumed or not, is replaced,
        so an old code stops working the moment a new one exists.
        """
        code = generate_otp_code(self._length)
        now = self._clock()
        await self._challenges.replace(
            OtpChallengeDoc(
                email=email,
                code_hash=hash_otp(code),
                purpose=purpose,
                remember_device=remember_device,
                consumed=False,
                expires_at=now + self._ttl,
                created_at=now,
            )
        )
        log.info("otp_issued", purpose=purpose.value, ttl_seconds=int(self._ttl.total_seconds()))
        return code

    async def verify(self, email: str, code: str, purpose: OtpPurpose) -> OtpChallengeDoc:
        """Consume the live challenge matching all three values and return it.

        Raises:
            InvalidOrExpiredCodeError: for every kind of mismatch, with the
                same message, so callers learn nothing about which check failed.
        """
        code = (code or "").strip()
        if not email or len(code) != self._length or not code.isdigit():
            log.warning("otp_verification_failed", purpose=purpose.value)
            raise InvalidOrExpiredCodeError(INVALID_CODE_MESSAGE, field="otp")

        consumed = await self._challenges.consume(
            email, purpose, hash_otp(code), self._clock()
        )
        if consumed is None:
            log.warning("otp_verification_failed", purpose=purpose.value)
            raise InvalidOrExpiredCodeError(INVALID_CODE_MESSAGE, field="otp")

        log.info("otp_verified", purpose=purpose.value, challenge_id=str(consumed.id))
        return consumed
