"""
Best-effort mirror of user profiles into the chat provider's directory.

The directory is a side channel: a slow or failing provider must never
block or fail the auth flow that triggered the sync.
"""

from __future__ import annotations

import asyncio

from infrastructure.chat.protocol import ChatDirectory
from schemas.models.user import UserDoc
from shared.logging import get_logger

log = get_logger(__name__)

DEFAULT_SYNC_TIMEOUT_SECONDS = 5.0


async def sync_user_to_directory(
    directory: ChatDirectory | None,
    user: UserDoc,
    timeout: float = DEFAULT_SYNC_TIMEOUT_SECONDS,
) -> bool:
    """Upsert {id, name, image} for *user*. Returns False on any failure."""
    if directory is None:
        return False
    try:
        synced = await asyncio.wait_for(
            directory.upsert_user(user.user_id, user.full_name, user.profile_pic),
            timeout=timeout,
        )
    except asyncio.TimeoutError:
        log.warning("directory_sync_failed", user_id=user.user_id, reason="timeout")
        return False
    except Exception as e:
        log.warning(
            "directory_sync_failed",
            user_id=user.user_id,
            reason="error",
            error=str(e),
            error_type=type(e).__name__,
        )
        return False

    if not synced:
        log.warning("directory_sync_failed", user_id=user.user_id, reason="rejected")
        return False
    log.debug("directory_sync_ok", user_id=user.user_id)
    return True
