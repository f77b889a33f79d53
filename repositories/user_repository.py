"""
Repository for the `users` collection.

Returns UserDoc models; raw dicts never leave this module. Uniqueness of
email is enforced by a unique index (see repositories/indexes.py), so
insert() surfaces pymongo's DuplicateKeyError for the service to translate.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.asynchronous.database import AsyncDatabase

from schemas.models.user import AuthProviderEntry, UserDoc

USERS_COLLECTION = "users"


class UserRepository:
    def __init__(self, db: AsyncDatabase) -> None:
        self._collection = db[USERS_COLLECTION]

    async def find_by_email(self, email: str) -> Optional[UserDoc]:
        return UserDoc.from_mongo(await self._collection.find_one({"email": email}))

    async def find_by_id(self, user_id: str) -> Optional[UserDoc]:
        if not ObjectId.is_valid(user_id):
            return None
        return UserDoc.from_mongo(
            await self._collection.find_one({"_id": ObjectId(user_id)})
        )

    async def insert(self, user: UserDoc) -> UserDoc:
        """Insert *user* and return it with its generated id."""
        result = await self._collection.insert_one(user.to_mongo())
        return user.model_copy(update={"id": result.inserted_id})

    async def delete(self, user_id: ObjectId) -> bool:
        result = await self._collection.delete_one({"_id": user_id})
        return result.deleted_count == 1

    async def update_fields(
        self, user_id: ObjectId, fields: dict[str, Any]
    ) -> Optional[UserDoc]:
        """Apply a ``$set`` of *fields* and return the updated document."""
        doc = await self._collection.find_one_and_update(
            {"_id": user_id},
            {"$set": fields},
            return_document=ReturnDocument.AFTER,
        )
        return UserDoc.from_mongo(doc)

    async def add_auth_provider(
        self, user_id: ObjectId, entry: AuthProviderEntry, now: datetime
    ) -> Optional[UserDoc]:
        """Link a provider unless one with the same key is already linked."""
        doc = await self._collection.find_one_and_update(
            {"_id": user_id, "auth_providers.provider": {"$ne": entry.provider}},
            {
                "$push": {"auth_providers": entry.model_dump()},
                "$set": {"updated_at": now},
            },
            return_document=ReturnDocument.AFTER,
        )
        return UserDoc.from_mongo(doc)
