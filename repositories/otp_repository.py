"""
Repository for the `otp_challenges` collection.

Both operations are single atomic commands:

- replace(): upsert keyed by the unique (email, purpose) index, so issuing a
  code supersedes any earlier one and two concurrent issues can never leave
  two live codes.
- consume(): find_one_and_update whose filter includes ``consumed: False``
  and the expiry bound, so of two concurrent verifications of the same code
  at most one matches.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pymongo import ReturnDocument
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import DuplicateKeyError

from schemas.models.otp import OtpChallengeDoc, OtpPurpose

OTP_COLLECTION = "otp_challenges"


class OtpRepository:
    def __init__(self, db: AsyncDatabase) -> None:
        self._collection = db[OTP_COLLECTION]

    async def replace(self, challenge: OtpChallengeDoc) -> None:
        key = {"email": challenge.email, "purpose": challenge.purpose.value}
        doc = challenge.to_mongo()
        try:
            await self._collection.replace_one(key, doc, upsert=True)
        except DuplicateKeyError:
            # A concurrent upsert inserted first; ours now matches an existing doc
            await self._collection.replace_one(key, doc, upsert=True)

    async def consume(
        self, email: str, purpose: OtpPurpose, code_hash: str, now: datetime
    ) -> Optional[OtpChallengeDoc]:
        """Mark the matching live challenge consumed; None if nothing matched."""
        doc = await self._collection.find_one_and_update(
            {
                "email": email,
                "purpose": purpose.value,
                "code_hash": code_hash,
                "consumed": False,
                "expires_at": {"$gt": now},
            },
            {"$set": {"consumed": True, "consumed_at": now}},
            return_document=ReturnDocument.AFTER,
        )
        return OtpChallengeDoc.from_mongo(doc)
