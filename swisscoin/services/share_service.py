"""
Materializes pending participant rows for contacts a record was shared with
by phone number only.

Transactions, settlements and subscriptions get one participant row per
distinct phone hash among the people they involve; a reminder gets one
shared-reminder row for its recipient. Rows already present are left alone,
so reprocessing a batch creates nothing new.

Each record is processed in its own transaction; a failure rolls back that
record alone and the batch carries on.
"""

from typing import Any, Awaitable, Callable, List

import structlog
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from swisscoin.models.participant import (
    SETTLEMENT_PARTICIPANTS,
    SUBSCRIPTION_PARTICIPANTS,
    TRANSACTION_PARTICIPANTS,
    ClaimTable,
    ParticipantInDB,
    SharedReminderInDB,
)
from swisscoin.repositories.participant_repo import ParticipantRepository
from swisscoin.repositories.profile_repo import ProfileRepository
from swisscoin.repositories.shared_record_repo import SharedRecordRepository
from swisscoin.schemas.sharing import ShareBatchResponse

logger = structlog.get_logger(__name__)

Materializer = Callable[[str, str, Any], Awaitable[int]]


class ShareService:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.records = SharedRecordRepository(db)
        self.profiles = ProfileRepository(db)
        self.participants = ParticipantRepository(db)

    async def process_transaction_shares(self, source_owner_id: str, transaction_ids: Any) -> ShareBatchResponse:
        return await self._process_batch("transaction", source_owner_id, transaction_ids, self._materialize_transaction)

    async def process_settlement_shares(self, source_owner_id: str, settlement_ids: Any) -> ShareBatchResponse:
        return await self._process_batch("settlement", source_owner_id, settlement_ids, self._materialize_settlement)

    async def process_subscription_shares(self, source_owner_id: str, subscription_ids: Any) -> ShareBatchResponse:
        return await self._process_batch(
            "subscription", source_owner_id, subscription_ids, self._materialize_subscription
        )

    async def process_reminder_shares(self, source_owner_id: str, reminder_ids: Any) -> ShareBatchResponse:
        return await self._process_batch("reminder", source_owner_id, reminder_ids, self._materialize_reminder)

    async def _process_batch(
        self,
        kind: str,
        source_owner_id: str,
        record_ids: Any,
        materialize: Materializer
    ) -> ShareBatchResponse:
        if not isinstance(record_ids, list) or not record_ids:
            return ShareBatchResponse()

        processed = 0
        created = 0
        for record_id in record_ids:
            if not isinstance(record_id, str) or not record_id:
                logger.warning("share_skipped", kind=kind, record_id=repr(record_id))
                continue
            try:
                async with await self.db.client.start_session() as session:
                    async with session.start_transaction():
                        created_here = await materialize(source_owner_id, record_id, session)
            except PyMongoError as exc:
                logger.warning("share_failed", kind=kind, record_id=record_id, error=str(exc))
                continue
            processed += 1
            created += created_here

        logger.info("shares_processed", kind=kind, processed=processed, participants_created=created)
        return ShareBatchResponse(processed=processed, participants_created=created)

    async def _materialize_transaction(self, source_owner_id: str, transaction_id: str, session) -> int:
        person_ids = await self.records.get_transaction_person_ids(transaction_id, session=session)
        return await self._materialize_participants(
            TRANSACTION_PARTICIPANTS, transaction_id, person_ids, source_owner_id, session
        )

    async def _materialize_settlement(self, source_owner_id: str, settlement_id: str, session) -> int:
        person_ids = await self.records.get_settlement_person_ids(settlement_id, session=session)
        return await self._materialize_participants(
            SETTLEMENT_PARTICIPANTS, settlement_id, person_ids, source_owner_id, session
        )

    async def _materialize_subscription(self, source_owner_id: str, subscription_id: str, session) -> int:
        person_ids = await self.records.get_subscriber_person_ids(subscription_id, session=session)
        return await self._materialize_participants(
            SUBSCRIPTION_PARTICIPANTS, subscription_id, person_ids, source_owner_id, session
        )

    async def _materialize_participants(
        self,
        table: ClaimTable,
        parent_id: str,
        person_ids: List[str],
        source_owner_id: str,
        session
    ) -> int:
        if not person_ids:
            return 0

        phone_hashes = await self.records.get_person_phone_hashes(person_ids, session=session)
        created = 0
        for phone_hash in dict.fromkeys(phone_hashes.values()):
            profile = await self.profiles.find_active_by_phone_hash(phone_hash, session=session)
            participant = ParticipantInDB(
                phone_hash=phone_hash,
                profile_id=profile.id if profile else None,
                source_owner_id=source_owner_id
            )
            if await self.participants.insert_participant_if_absent(table, parent_id, participant, session=session):
                created += 1
        return created

    async def _materialize_reminder(self, source_owner_id: str, reminder_id: str, session) -> int:
        reminder = await self.records.get_reminder(reminder_id, session=session)
        if reminder is None or not reminder.get("to_person_id"):
            return 0

        person_id = reminder["to_person_id"]
        phone_hash = (await self.records.get_person_phone_hashes([person_id], session=session)).get(person_id)
        if phone_hash is None:
            return 0

        profile = await self.profiles.find_active_by_phone_hash(phone_hash, session=session)
        shared = SharedReminderInDB(
            reminder_id=reminder_id,
            from_profile_id=source_owner_id,
            to_profile_id=profile.id if profile else None,
            phone_hash=phone_hash,
            amount=reminder.get("amount") or 0,
            currency=reminder.get("currency"),
            message=reminder.get("message")
        )
        return int(await self.participants.insert_shared_reminder_if_absent(shared, session=session))
