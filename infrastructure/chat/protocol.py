"""ChatDirectory protocol — the external chat provider's user directory."""

from typing import Protocol


class ChatDirectory(Protocol):
    async def upsert_user(self, user_id: str, name: str, image: str) -> bool: ...
