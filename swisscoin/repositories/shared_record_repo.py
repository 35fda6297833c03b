"""
SharedRecordRepository - server-side copies of the ledger records a profile
shares, and the contacts (persons) they point at.

Read-only: rows are written by the owning device's sync and only read here
to decide who a record is shared with and to render it for recipients.
"""

from typing import Any, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase


class SharedRecordRepository:
    """Shared transactions, settlements, subscriptions and reminders."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.transactions = db["financial_transactions"]
        self.splits = db["transaction_splits"]
        self.payers = db["transaction_payers"]
        self.settlements = db["settlements"]
        self.subscriptions = db["subscriptions"]
        self.subscribers = db["subscription_subscribers"]
        self.subscription_payments = db["subscription_payments"]
        self.subscription_settlements = db["subscription_settlements"]
        self.subscription_reminders = db["subscription_reminders"]
        self.reminders = db["reminders"]
        self.persons = db["persons"]

    # ===== WHO A RECORD IS SHARED WITH =====

    async def get_transaction_person_ids(self, transaction_id: str, session=None) -> List[str]:
        """Everyone a transaction's splits are owed by, then everyone who paid."""
        splits = await self.get_transaction_splits(transaction_id, session=session)
        payers = await self.get_transaction_payers(transaction_id, session=session)
        person_ids = [doc.get("owed_by_id") for doc in splits] + [doc.get("paid_by_id") for doc in payers]
        return list(dict.fromkeys(pid for pid in person_ids if pid))

    async def get_settlement_person_ids(self, settlement_id: str, session=None) -> List[str]:
        settlement = await self.get_settlement(settlement_id, session=session)
        if settlement is None:
            return []
        person_ids = [settlement.get("from_person_id"), settlement.get("to_person_id")]
        return list(dict.fromkeys(pid for pid in person_ids if pid))

    async def get_subscriber_person_ids(self, subscription_id: str, session=None) -> List[str]:
        docs = await self._find_by(self.subscribers, "subscription_id", subscription_id, session)
        return [doc["person_id"] for doc in docs if doc.get("person_id")]

    async def get_person_phone_hashes(self, person_ids: List[str], session=None) -> Dict[str, str]:
        """Map person id -> phone hash, skipping contacts without a phone."""
        if not person_ids:
            return {}
        docs = await self.persons.find(
            {"_id": {"$in": person_ids}, "phone_hash": {"$ne": None}},
            session=session
        ).to_list(None)
        return {doc["_id"]: doc["phone_hash"] for doc in docs}

    # ===== RECORDS =====

    async def get_transaction(self, transaction_id: str, session=None) -> Optional[Dict[str, Any]]:
        return await self.transactions.find_one({"_id": transaction_id}, session=session)

    async def get_transaction_splits(self, transaction_id: str, session=None) -> List[Dict[str, Any]]:
        return await self._find_by(self.splits, "transaction_id", transaction_id, session)

    async def get_transaction_payers(self, transaction_id: str, session=None) -> List[Dict[str, Any]]:
        return await self._find_by(self.payers, "transaction_id", transaction_id, session)

    async def get_settlement(self, settlement_id: str, session=None) -> Optional[Dict[str, Any]]:
        return await self.settlements.find_one({"_id": settlement_id}, session=session)

    async def get_subscription(self, subscription_id: str, session=None) -> Optional[Dict[str, Any]]:
        return await self.subscriptions.find_one({"_id": subscription_id}, session=session)

    async def get_subscription_activity(self, subscription_id: str) -> Dict[str, List[Dict[str, Any]]]:
        """Subscribers, payments, settlements and reminders of a subscription."""
        return {
            "subscribers": await self._find_by(self.subscribers, "subscription_id", subscription_id),
            "payments": await self._find_by(self.subscription_payments, "subscription_id", subscription_id),
            "settlements": await self._find_by(self.subscription_settlements, "subscription_id", subscription_id),
            "reminders": await self._find_by(self.subscription_reminders, "subscription_id", subscription_id),
        }

    async def get_reminder(self, reminder_id: str, session=None) -> Optional[Dict[str, Any]]:
        return await self.reminders.find_one({"_id": reminder_id}, session=session)

    async def get_persons(self, person_ids: List[str]) -> List[Dict[str, Any]]:
        if not person_ids:
            return []
        return await self.persons.find({"_id": {"$in": person_ids}}).to_list(None)

    async def _find_by(self, collection, field: str, value: str, session=None) -> List[Dict[str, Any]]:
        return await collection.find({field: value}, session=session).to_list(None)
