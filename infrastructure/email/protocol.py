"""EmailProvider protocol — services depend on this, not the concrete implementation."""

from typing import Optional, Protocol

from schemas.models.otp import OtpPurpose


class EmailProvider(Protocol):
    async def send_otp_email(
        self,
        email: str,
        user_name: Optional[str],
        otp_code: str,
        purpose: OtpPurpose,
    ) -> bool: ...

    async def send_welcome_email(
        self, email: str, user_name: Optional[str]
    ) -> bool: ...
