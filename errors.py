"""
Application error hierarchy and FastAPI exception handlers.

AppError is the base for all typed errors. Services raise them; the global
exception handler converts AppError subclasses to consistent JSON responses,
so route handlers never translate errors themselves.

Non-AppError exceptions are logged and returned as a generic 500 (with Sentry
reporting in production).
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from shared.logging import get_logger

log = get_logger(__name__)


class AppError(Exception):
    """Base application error. All typed errors inherit from this."""

    status_code: int = 500
    error_code: str = "internal_error"

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        details: Optional[Any] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.field = field
        self.details = details

    def to_dict(self) -> dict:
        payload: dict = {"error": self.message, "code": self.error_code}
        if self.field is not None:
            payload["field"] = self.field
        if self.details is not None:
            payload["details"] = self.details
        return payload


class ValidationError(AppError):
    status_code = 400
    error_code = "validation_error"


class DuplicateEmailError(AppError):
    status_code = 400
    error_code = "duplicate_email"


class InvalidOrExpiredCodeError(AppError):
    """Wrong, expired, already-used or wrong-purpose OTP. Deliberately uniform."""

    status_code = 400
    error_code = "invalid_or_expired"


class InvalidCredentialsError(AppError):
    """Unknown email or wrong password. The two cases are indistinguishable."""

    status_code = 401
    error_code = "invalid_credentials"


class UnverifiedEmailError(AppError):
    """Credentials belong to an account that has not completed email verification."""

    status_code = 401
    error_code = "email_not_verified"

    def to_dict(self) -> dict:
        payload = super().to_dict()
        payload["requiresEmailVerification"] = True
        return payload


class UnauthenticatedError(AppError):
    status_code = 401
    error_code = "unauthenticated"


class NotFoundError(AppError):
    status_code = 404
    error_code = "not_found"


class InternalError(AppError):
    status_code = 500
    error_code = "internal_error"


class EmailDeliveryError(InternalError):
    error_code = "email_delivery_failed"


class ServiceUnavailableError(AppError):
    status_code = 503
    error_code = "service_unavailable"


def register_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the FastAPI app."""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        if exc.status_code >= 500:
            log.error(
                "app_error",
                path=request.url.path,
                error_code=exc.error_code,
                error=exc.message,
            )
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        errors = exc.errors()
        first = errors[0] if errors else {}
        loc = [str(part) for part in first.get("loc", ()) if part != "body"]
        err = ValidationError(
            first.get("msg", "Invalid request"),
            field=".".join(loc) or None,
            details=[
                {"loc": [str(p) for p in e.get("loc", ())], "msg": e.get("msg")}
                for e in errors
            ],
        )
        return JSONResponse(status_code=err.status_code, content=err.to_dict())

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        # Sentry integration: if sentry_sdk is initialized it will auto-capture
        # unhandled exceptions before this handler fires.
        log.error(
            "unhandled_exception",
            path=request.url.path,
            error=str(exc),
            error_type=type(exc).__name__,
            exc_info=exc,
        )
        return JSONResponse(
            status_code=500,
            content={"error": "An internal server error occurred.", "code": "internal_error"},
        )
