"""
Session issuer: signed, self-contained JWTs carried in an HTTP-only cookie.

Tokens are verifiable without a store lookup. There is no server-side
revocation; logout clears the cookie.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Callable, Literal

import jwt
from fastapi import Response

from config import SessionSettings
from errors import UnauthenticatedError
from schemas.models.base import utcnow
from shared.logging import get_logger

log = get_logger(__name__)

SameSite = Literal["strict", "lax"]


class SessionService:
    def __init__(
        self,
        settings: SessionSettings,
        *,
        secure_cookies: bool = True,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._settings = settings
        self._secure = secure_cookies and settings.cookie_secure
        self._clock = clock
        self._ttl = timedelta(seconds=settings.session_ttl_seconds)

        if settings.use_rs256:
            # Support keys provided via env with literal \n sequences
            self._algorithm = "RS256"
            self._signing_key = settings.jwt_private_key.replace("\\n", "\n")
            self._verify_key = settings.jwt_public_key.replace("\\n", "\n")
        else:
            if not settings.jwt_secret:
                raise RuntimeError(
                    "JWT_SECRET must be set when RS256 keys are not provided"
                )
            self._algorithm = "HS256"
            self._signing_key = self._verify_key = settings.jwt_secret

    @property
    def cookie_name(self) -> str:
        return self._settings.session_cookie_name

    def issue(self, user_id: str, method: str = "pwd") -> str:
        """Mint a token for *user_id*, valid for the configured window."""
        now = self._clock()
        claims = {
            "iss": self._settings.jwt_issuer,
            "aud": self._settings.jwt_audience,
            "sub": str(user_id),
            "iat": int(now.timestamp()),
            "exp": int((now + self._ttl).timestamp()),
            "amr": [method],  # Authentication Methods References
        }
        return jwt.encode(claims, self._signing_key, algorithm=self._algorithm)

    def validate(self, token: str | None) -> str:
        """Return the user id embedded in *token*.

        Raises:
            UnauthenticatedError: token missing, malformed, badly signed or expired.
        """
        if not token:
            raise UnauthenticatedError("Unauthorized - No token provided")
        try:
            claims = jwt.decode(
                token,
                self._verify_key,
                algorithms=[self._algorithm],
                audience=self._settings.jwt_audience,
                issuer=self._settings.jwt_issuer,
                # time claims are checked against the injected clock below
                options={
                    "require": ["exp", "iat", "sub"],
                    "verify_exp": False,
                    "verify_iat": False,
                },
            )
        except jwt.InvalidTokenError as e:
            log.warning("session_token_invalid", reason=type(e).__name__)
            raise UnauthenticatedError("Unauthorized - Invalid token")

        if claims["exp"] <= int(self._clock().timestamp()):
            raise UnauthenticatedError("Unauthorized - Token expired")
        return claims["sub"]

    def set_session_cookie(self, response: Response, token: str, samesite: SameSite = "strict") -> None:
        response.set_cookie(
            self.cookie_name,
            value=token,
            max_age=self._settings.session_ttl_seconds,
            httponly=True,
            secure=self._secure,
            samesite=samesite,
            path="/",
        )

    def clear_session_cookie(self, response: Response) -> None:
        response.delete_cookie(
            self.cookie_name,
            httponly=True,
            secure=self._secure,
            samesite="strict",
            path="/",
        )
