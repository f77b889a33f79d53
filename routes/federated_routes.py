"""
Federated sign-in routes (OAuth / OpenID Connect via Authlib).

GET /auth/federated/start     — redirect to the identity provider
GET /auth/federated/callback  — finish the exchange, start a session, redirect to the app

Authlib keeps the OAuth state and nonce in the signed request session, so a
forged or replayed callback fails inside authorize_access_token().
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse

from config import AppSettings
from dependencies import (
    get_federated_service,
    get_oauth_providers,
    get_session_service,
    get_settings,
)
from errors import AppError, ServiceUnavailableError
from infrastructure.oauth_clients import PROVIDER_STRATEGIES, get_oauth_redirect_url
from services.federated_service import FederatedIdentityService
from services.session_service import SessionService
from shared.logging import get_logger

log = get_logger(__name__)

router = APIRouter(prefix="/auth/federated", tags=["federated"])

DEFAULT_PROVIDER = "google"


def _failure_redirect(settings: AppSettings) -> RedirectResponse:
    return RedirectResponse(
        f"{settings.frontend_url.rstrip('/')}/login?error=auth_failed", status_code=302
    )


def _callback_url(request: Request, provider: str, settings: AppSettings) -> str:
    configured = get_oauth_redirect_url(provider, settings.oauth)
    if configured:
        return configured
    return str(
        request.url_for("federated_callback").include_query_params(provider=provider)
    )


@router.get("/start")
async def federated_start(
    request: Request,
    provider: str = DEFAULT_PROVIDER,
    providers: dict = Depends(get_oauth_providers),
    settings: AppSettings = Depends(get_settings),
):
    client = providers.get(provider)
    if client is None:
        raise ServiceUnavailableError(f"{provider} sign-in is not configured")
    return await client.authorize_redirect(
        request, _callback_url(request, provider, settings)
    )


@router.get("/callback", name="federated_callback")
async def federated_callback(
    request: Request,
    provider: str = DEFAULT_PROVIDER,
    providers: dict = Depends(get_oauth_providers),
    settings: AppSettings = Depends(get_settings),
    federated: FederatedIdentityService = Depends(get_federated_service),
    sessions: SessionService = Depends(get_session_service),
) -> RedirectResponse:
    client = providers.get(provider)
    strategy = PROVIDER_STRATEGIES.get(provider)
    if client is None or strategy is None:
        log.warning("federated_callback_failed", provider=provider, reason="not_configured")
        return _failure_redirect(settings)

    error = request.query_params.get("error")
    if error:
        log.warning("federated_callback_failed", provider=provider, reason="provider_error", error=error)
        return _failure_redirect(settings)

    try:
        token = await client.authorize_access_token(request)
        identity = await strategy.fetch_identity(client, token)
        result = await federated.authenticate(identity)
    except AppError as e:
        log.warning("federated_callback_failed", provider=provider, reason=e.error_code)
        return _failure_redirect(settings)
    except Exception as e:
        log.error(
            "federated_callback_failed",
            provider=provider,
            reason="exchange_error",
            error=str(e),
            error_type=type(e).__name__,
        )
        return _failure_redirect(settings)

    target = "/" if result.user.is_onboarded else "/onboarding"
    resp = RedirectResponse(f"{settings.frontend_url.rstrip('/')}{target}", status_code=302)
    # Lax: the browser arrives here from the provider's cross-site redirect
    sessions.set_session_cookie(resp, result.token, samesite="lax")
    return resp
