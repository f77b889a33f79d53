"""
Federated identity bridge: maps a provider-asserted identity onto a local
user and mints a session for it.

Kept free of any OAuth or HTTP detail; the callback route turns the
provider response into a FederatedIdentity and hands it over.
"""

from __future__ import annotations

from errors import ValidationError
from infrastructure.chat.protocol import ChatDirectory
from schemas.models.base import utcnow
from schemas.models.identity import FederatedIdentity
from schemas.models.user import AuthProviderEntry
from services.credential_service import CredentialService
from services.directory_sync import DEFAULT_SYNC_TIMEOUT_SECONDS, sync_user_to_directory
from services.registration_service import AuthResult
from services.session_service import SessionService
from shared.logging import get_logger

log = get_logger(__name__)


class FederatedIdentityService:
    def __init__(
        self,
        credentials: CredentialService,
        sessions: SessionService,
        directory: ChatDirectory | None = None,
        directory_timeout: float = DEFAULT_SYNC_TIMEOUT_SECONDS,
    ) -> None:
        self._credentials = credentials
        self._sessions = sessions
        self._directory = directory
        self._directory_timeout = directory_timeout

    async def authenticate(self, identity: FederatedIdentity) -> AuthResult:
        """Find or create the user behind *identity* and sign them in.

        Only provider-verified emails are accepted, since the account is
        created (or marked) verified on the provider's word.

        Raises:
            ValidationError: no email, or an email the provider has not verified.
        """
        email = (identity.email or "").strip()
        if not email:
            raise ValidationError("Identity provider did not return an email", field="email")
        if not identity.email_verified:
            log.warning("federated_login_rejected", provider=identity.provider, reason="email_not_verified")
            raise ValidationError("Identity provider email is not verified", field="email")

        user = await self._credentials.get_by_email(email)
        if user is None:
            user = await self._credentials.create_user(
                email,
                None,
                identity.name.strip() or email.split("@")[0],
                profile_pic=identity.picture or None,
                email_preverified=True,
                provider=AuthProviderEntry(
                    provider=identity.provider,
                    provider_user_id=identity.provider_user_id,
                    linked_at=utcnow(),
                ),
            )
            is_new = True
        else:
            is_new = False
            if not user.is_email_verified:
                user = await self._credentials.mark_email_verified(user)
            user = await self._credentials.link_provider(
                user, identity.provider, identity.provider_user_id
            )

        await sync_user_to_directory(self._directory, user, self._directory_timeout)
        user = await self._credentials.record_login(user)

        log.info(
            "login_success",
            user_id=user.user_id,
            auth_method=identity.provider,
            new_user=is_new,
        )
        return AuthResult(
            user=user, token=self._sessions.issue(user.user_id, method=identity.provider)
        )
