from datetime import datetime, timezone
from typing import List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from swisscoin.models.participant import AccountMergeLog
from swisscoin.models.profile import PhoneStatus, ProfileInDB


class ProfileRepository:
    """Profile database operations."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["profiles"]
        self.merge_log = db["account_merge_log"]
        self.persons = db["persons"]

    async def get_profile(self, profile_id: str, session=None) -> ProfileInDB | None:
        """Get an active (non-deleted) profile by id."""
        doc = await self.collection.find_one(
            {"_id": profile_id, "deleted_at": None},
            session=session
        )
        if doc:
            return ProfileInDB(**doc)
        return None

    async def find_active_by_phone_hash(
        self,
        phone_hash: str,
        exclude_id: Optional[str] = None,
        session=None
    ) -> ProfileInDB | None:
        """Find another non-deleted profile bearing a phone hash."""
        query = {"phone_hash": phone_hash, "deleted_at": None}
        if exclude_id is not None:
            query["_id"] = {"$ne": exclude_id}
        doc = await self.collection.find_one(query, session=session)
        if doc:
            return ProfileInDB(**doc)
        return None

    async def find_active_by_phone_hashes(
        self,
        phone_hashes: List[str],
        exclude_id: Optional[str] = None
    ) -> List[ProfileInDB]:
        query = {"phone_hash": {"$in": phone_hashes}, "deleted_at": None}
        if exclude_id is not None:
            query["_id"] = {"$ne": exclude_id}
        docs = await self.collection.find(query).to_list(None)
        return [ProfileInDB(**doc) for doc in docs]

    async def set_phone_status(
        self,
        profile_id: str,
        status: PhoneStatus,
        pending_phone: Optional[str] = None
    ) -> bool:
        updates = {
            "phone_status": status.value,
            "updated_at": datetime.now(timezone.utc)
        }
        if pending_phone is not None:
            updates["pending_phone"] = pending_phone
        result = await self.collection.update_one(
            {"_id": profile_id, "deleted_at": None},
            {"$set": updates}
        )
        return result.modified_count > 0

    async def attach_phone(
        self,
        profile_id: str,
        phone_number: str,
        phone_hash: str,
        session=None
    ) -> bool:
        """Set a verified phone on a profile."""
        result = await self.collection.update_one(
            {"_id": profile_id, "deleted_at": None},
            {"$set": {
                "phone_number": phone_number,
                "phone_hash": phone_hash,
                "phone_verified": True,
                "phone_status": PhoneStatus.VERIFIED.value,
                "pending_phone": None,
                "updated_at": datetime.now(timezone.utc)
            }},
            session=session
        )
        return result.matched_count > 0

    async def tombstone_merged(self, profile_id: str, session=None) -> bool:
        """Deactivate an absorbed profile and release its phone."""
        now = datetime.now(timezone.utc)
        result = await self.collection.update_one(
            {"_id": profile_id, "deleted_at": None},
            {"$set": {
                "deleted_at": now,
                "phone_number": None,
                "phone_hash": None,
                "phone_verified": False,
                "phone_status": PhoneStatus.MERGED.value,
                "is_active": False,
                "updated_at": now
            }},
            session=session
        )
        return result.modified_count > 0

    async def repoint_linked_persons(self, from_id: str, to_id: str, session=None) -> int:
        """Re-point contacts in other users' books from one profile to another."""
        result = await self.persons.update_many(
            {"linked_profile_id": from_id},
            {"$set": {
                "linked_profile_id": to_id,
                "updated_at": datetime.now(timezone.utc)
            }},
            session=session
        )
        return result.modified_count

    async def insert_merge_log(self, entry: AccountMergeLog, session=None):
        result = await self.merge_log.insert_one(entry.model_dump(), session=session)
        return result.inserted_id
