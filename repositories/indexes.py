"""
Index definitions, applied once at startup.

The unique indexes are what make the repositories' single-command upserts
safe under concurrency; the TTL index lets MongoDB sweep dead OTP challenges.
"""

from __future__ import annotations

from pymongo import ASCENDING
from pymongo.asynchronous.database import AsyncDatabase

from repositories.device_repository import DEVICES_COLLECTION
from repositories.otp_repository import OTP_COLLECTION
from repositories.user_repository import USERS_COLLECTION
from shared.logging import get_logger

log = get_logger(__name__)


async def ensure_indexes(db: AsyncDatabase) -> None:
    await db[USERS_COLLECTION].create_index([("email", ASCENDING)], unique=True)

    otp = db[OTP_COLLECTION]
    await otp.create_index(
        [("email", ASCENDING), ("purpose", ASCENDING)], unique=True
    )
    await otp.create_index([("expires_at", ASCENDING)], expireAfterSeconds=0)

    devices = db[DEVICES_COLLECTION]
    await devices.create_index(
        [("user_id", ASCENDING), ("device_fingerprint", ASCENDING)], unique=True
    )
    await devices.create_index([("expires_at", ASCENDING)], expireAfterSeconds=0)

    log.info("mongo_indexes_ensured")
