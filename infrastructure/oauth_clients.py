"""OAuth provider strategies and Authlib client initialisation.

Authlib's Starlette integration keeps the OAuth ``state`` and nonce in the
request session (SessionMiddleware), so no hand-rolled state handling is
needed here. Each strategy turns a provider token into a FederatedIdentity;
everything after that belongs to the federated identity bridge.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Tuple

from authlib.integrations.starlette_client import OAuth

from schemas.models.identity import FederatedIdentity
from shared.logging import get_logger

log = get_logger(__name__)


# ── Provider strategies ───────────────────────────────────────────────────────


class OAuthProviderStrategy(ABC):
    """Encapsulates everything that differs between OAuth providers."""

    @property
    @abstractmethod
    def key(self) -> str: ...

    @abstractmethod
    async def fetch_identity(self, client: Any, token: Any) -> FederatedIdentity: ...


class GoogleStrategy(OAuthProviderStrategy):
    key = "google"

    async def fetch_identity(self, client: Any, token: Any) -> FederatedIdentity:
        userinfo = token.get("userinfo")
        if userinfo is None:
            resp = await client.userinfo(token=token)
            userinfo = dict(resp)
        return extract_identity_from_google(userinfo)


PROVIDER_STRATEGIES: dict[str, OAuthProviderStrategy] = {
    s.key: s() for s in [GoogleStrategy]
}


# ── Authlib init ─────────────────────────────────────────────────────────────


def init_oauth(
    settings: Any, session_enabled: bool = True
) -> Tuple[Optional[OAuth], Dict[str, Any]]:
    """Initialise Authlib OAuth clients for FastAPI/Starlette.

    Accepts an OAuthProviderSettings instance (from config.py).
    Returns (oauth, providers_dict) — both are stored on app.state.
    Returns (None, {}) if no providers are configured, or if the app runs
    without SessionMiddleware, which Authlib needs for the OAuth state.
    """
    if not session_enabled:
        log.warning("oauth_disabled", reason="session_middleware_disabled")
        return None, {}

    oauth = OAuth()
    providers: Dict[str, Any] = {}

    if settings.google_oauth_client_id and settings.google_oauth_client_secret:
        try:
            google = oauth.register(
                name="google",
                client_id=settings.google_oauth_client_id,
                client_secret=settings.google_oauth_client_secret,
                server_metadata_url="https://accounts.google.com/.well-known/openid-configuration",
                client_kwargs={
                    "scope": "openid email profile",
                    "prompt": "select_account",
                },
            )
            providers["google"] = google
            log.info("oauth_provider_initialized", provider="google")
        except Exception as e:
            log.error("oauth_provider_init_failed", provider="google", error=str(e))

    if not providers:
        log.warning("oauth_no_providers_configured")
        return None, {}

    return oauth, providers


def get_oauth_redirect_url(provider: str, settings: Any) -> str:
    """Return the configured callback URI for *provider*, or "" when unset.

    Routes fall back to ``request.url_for(...)`` on an empty result.
    """
    return getattr(settings, f"{provider}_oauth_redirect_uri", "") or ""


# ── Identity extractors ───────────────────────────────────────────────────────


def extract_identity_from_google(userinfo: Dict[str, Any]) -> FederatedIdentity:
    return FederatedIdentity(
        provider="google",
        provider_user_id=str(userinfo.get("sub", "")),
        email=(userinfo.get("email") or "").strip(),
        email_verified=bool(userinfo.get("email_verified", False)),
        name=userinfo.get("name") or "",
        picture=userinfo.get("picture") or "",
    )
