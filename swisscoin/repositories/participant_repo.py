"""
ParticipantRepository - phone-hash-addressed ledger rows.

Every claim update repeats the `owner IS NULL` guard, so a row that another
transaction has already claimed is never overwritten.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from swisscoin.models.participant import (
    SHARED_REMINDERS,
    ClaimTable,
    ParticipantInDB,
    SharedReminderInDB,
)


class ParticipantRepository:
    """Repository for participant and shared-reminder rows."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db

    async def claim_unowned(
        self,
        table: ClaimTable,
        phone_hash: str,
        profile_id: str,
        session=None
    ) -> List[Dict[str, Any]]:
        """
        Attach profile_id to every unowned row recorded against phone_hash.

        Returns the claimed documents (as they were before the update).
        """
        collection = self.db[table.collection]
        docs = await collection.find(
            {"phone_hash": phone_hash, table.owner_field: None},
            session=session
        ).to_list(None)
        if not docs:
            return []

        ids = [doc["_id"] for doc in docs]
        await collection.update_many(
            {"_id": {"$in": ids}, table.owner_field: None},
            {"$set": {
                table.owner_field: profile_id,
                "updated_at": datetime.now(timezone.utc)
            }},
            session=session
        )
        return docs

    async def reassign_owner(
        self,
        table: ClaimTable,
        from_profile_id: str,
        to_profile_id: str,
        session=None
    ) -> int:
        """Move rows owned by one profile to another (recipient side)."""
        result = await self.db[table.collection].update_many(
            {table.owner_field: from_profile_id},
            {"$set": {
                table.owner_field: to_profile_id,
                "updated_at": datetime.now(timezone.utc)
            }},
            session=session
        )
        return result.modified_count

    async def reassign_source(
        self,
        table: ClaimTable,
        from_profile_id: str,
        to_profile_id: str,
        session=None
    ) -> int:
        """Move rows created by one profile to another (sender side)."""
        field = "from_profile_id" if table.owner_field == "to_profile_id" else "source_owner_id"
        result = await self.db[table.collection].update_many(
            {field: from_profile_id},
            {"$set": {
                field: to_profile_id,
                "updated_at": datetime.now(timezone.utc)
            }},
            session=session
        )
        return result.modified_count

    async def insert_participant_if_absent(
        self,
        table: ClaimTable,
        parent_id: str,
        participant: ParticipantInDB,
        session=None
    ) -> bool:
        """
        Create a pending participant unless one exists for
        (parent id, phone_hash). Returns True if a row was created.
        """
        key = {table.parent_field: parent_id, "phone_hash": participant.phone_hash}
        return await self._insert_if_absent(table, key, participant.to_document(), session)

    async def insert_shared_reminder_if_absent(self, reminder: SharedReminderInDB, session=None) -> bool:
        """Same as above, keyed on (reminder_id, phone_hash)."""
        key = {"reminder_id": reminder.reminder_id, "phone_hash": reminder.phone_hash}
        return await self._insert_if_absent(SHARED_REMINDERS, key, reminder.to_document(), session)

    async def find_owned(
        self,
        table: ClaimTable,
        profile_id: str,
        since: Optional[datetime] = None
    ) -> List[Dict[str, Any]]:
        """Rows owned by a profile, optionally only those updated since a time."""
        query: Dict[str, Any] = {table.owner_field: profile_id}
        if since is not None:
            query["updated_at"] = {"$gte": since}
        return await self.db[table.collection].find(query).to_list(None)

    async def _insert_if_absent(self, table: ClaimTable, key: Dict[str, Any], doc: Dict[str, Any], session) -> bool:
        now = datetime.now(timezone.utc)
        for field in key:
            doc.pop(field, None)
        doc["created_at"] = doc.get("created_at") or now
        doc["updated_at"] = now

        result = await self.db[table.collection].update_one(
            key,
            {"$setOnInsert": doc},
            upsert=True,
            session=session
        )
        return result.upserted_id is not None
