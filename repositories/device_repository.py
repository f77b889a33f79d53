"""
Repository for the `trusted_devices` collection.

(user_id, device_fingerprint) is unique. upsert() is idempotent: repeated or
concurrent calls for the same pair converge on one document whose
created_at is set only on first insert.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from bson import ObjectId
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import DuplicateKeyError

from schemas.models.device import DeviceInfo, TrustedDeviceDoc

DEVICES_COLLECTION = "trusted_devices"


class TrustedDeviceRepository:
    def __init__(self, db: AsyncDatabase) -> None:
        self._collection = db[DEVICES_COLLECTION]

    async def find_active(
        self, user_id: ObjectId, fingerprint: str, now: datetime
    ) -> Optional[TrustedDeviceDoc]:
        doc = await self._collection.find_one(
            {
                "user_id": user_id,
                "device_fingerprint": fingerprint,
                "expires_at": {"$gt": now},
            }
        )
        return TrustedDeviceDoc.from_mongo(doc)

    async def upsert(
        self,
        user_id: ObjectId,
        fingerprint: str,
        device_info: DeviceInfo,
        now: datetime,
        expires_at: datetime,
    ) -> None:
        key = {"user_id": user_id, "device_fingerprint": fingerprint}
        update = {
            "$set": {
                "device_info": device_info.model_dump(),
                "last_used_at": now,
                "expires_at": expires_at,
                "updated_at": now,
            },
            "$setOnInsert": {"created_at": now},
        }
        try:
            await self._collection.update_one(key, update, upsert=True)
        except DuplicateKeyError:
            # Lost an insert race against the same device; the doc exists now
            await self._collection.update_one(key, update)

    async def touch(
        self, device_id: ObjectId, now: datetime, expires_at: datetime
    ) -> None:
        await self._collection.update_one(
            {"_id": device_id},
            {"$set": {"last_used_at": now, "expires_at": expires_at, "updated_at": now}},
        )

    async def list_for_user(self, user_id: ObjectId, now: datetime) -> list[TrustedDeviceDoc]:
        cursor = self._collection.find(
            {"user_id": user_id, "expires_at": {"$gt": now}}
        ).sort("last_used_at", -1)
        return [TrustedDeviceDoc.from_mongo(doc) async for doc in cursor]

    async def delete_for_user(self, user_id: ObjectId) -> int:
        result = await self._collection.delete_many({"user_id": user_id})
        return result.deleted_count
