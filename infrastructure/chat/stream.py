"""Stream Chat implementation of ChatDirectory.

Talks to the Stream REST API directly: server-side calls authenticate with a
JWT signed by the API secret (``{"server": true}``), sent alongside the API
key. Only the user upsert endpoint is needed.
"""

from typing import Optional

import jwt

from config import ChatDirectorySettings
from infrastructure.http_client import HttpClient
from shared.logging import get_logger

log = get_logger(__name__)


class StreamChatDirectory:
    def __init__(self, settings: ChatDirectorySettings, http_client: HttpClient) -> None:
        self._settings = settings
        self._http = http_client
        self._server_token: Optional[str] = None

    @property
    def configured(self) -> bool:
        return bool(self._settings.stream_api_key and self._settings.stream_api_secret)

    def _token(self) -> str:
        if self._server_token is None:
            self._server_token = jwt.encode(
                {"server": True}, self._settings.stream_api_secret, algorithm="HS256"
            )
        return self._server_token

    async def upsert_user(self, user_id: str, name: str, image: str) -> bool:
        if not self.configured:
            log.warning("chat_directory_upsert_skipped", reason="not_configured")
            return False

        url = f"{self._settings.stream_base_url.rstrip('/')}/users"
        headers = {
            "Authorization": self._token(),
            "stream-auth-type": "jwt",
            "Content-Type": "application/json",
        }
        payload = {"users": {user_id: {"id": user_id, "name": name, "image": image}}}

        response = await self._http.post(
            url,
            params={"api_key": self._settings.stream_api_key},
            json=payload,
            headers=headers,
        )
        if response.status_code in (200, 201):
            log.info("chat_directory_user_upserted", user_id=user_id)
            return True
        log.error(
            "chat_directory_upsert_failed",
            user_id=user_id,
            status_code=response.status_code,
            response=response.text[:200],
        )
        return False
