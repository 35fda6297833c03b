"""
Shared feed - the records other people shared with a profile, rendered for
the recipient.

Starts from the participant rows the profile owns and joins each to its
record, the contacts the record mentions and the profile that created it.
Participations whose record no longer exists are skipped.
"""

from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from swisscoin.models.participant import (
    SETTLEMENT_PARTICIPANTS,
    SUBSCRIPTION_PARTICIPANTS,
    TRANSACTION_PARTICIPANTS,
)
from swisscoin.repositories.participant_repo import ParticipantRepository
from swisscoin.repositories.profile_repo import ProfileRepository
from swisscoin.repositories.shared_record_repo import SharedRecordRepository
from swisscoin.schemas.sharing import (
    Creator,
    Participation,
    SharedPerson,
    SharedSettlement,
    SharedSettlementsResponse,
    SharedSubscription,
    SharedSubscriptionsResponse,
    SharedTransaction,
    SharedTransactionsResponse,
)


def _public(doc: Dict[str, Any]) -> Dict[str, Any]:
    """Rename Mongo's `_id` to `id`."""
    result = {key: value for key, value in doc.items() if key != "_id"}
    result["id"] = str(doc["_id"])
    return result


def _participation(doc: Dict[str, Any]) -> Participation:
    return Participation(id=str(doc["_id"]), status=doc.get("status", "pending"), role=doc.get("role", "participant"))


class SharedFeedService:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.records = SharedRecordRepository(db)
        self.participants = ParticipantRepository(db)
        self.profiles = ProfileRepository(db)

    async def shared_transactions(self, profile_id: str, since: Optional[datetime] = None) -> SharedTransactionsResponse:
        items = []
        for row in await self.participants.find_owned(TRANSACTION_PARTICIPANTS, profile_id, since):
            transaction = await self.records.get_transaction(row["transaction_id"])
            if transaction is None:
                continue
            splits = await self.records.get_transaction_splits(transaction["_id"])
            payers = await self.records.get_transaction_payers(transaction["_id"])

            person_ids = [transaction.get("payer_id"), transaction.get("created_by_id")]
            person_ids += [split.get("owed_by_id") for split in splits]
            person_ids += [payer.get("paid_by_id") for payer in payers]

            items.append(SharedTransaction(
                participation=_participation(row),
                transaction=_public(transaction),
                splits=[_public(split) for split in splits],
                payers=[_public(payer) for payer in payers],
                persons=await self._persons(person_ids),
                creator=await self._creator(transaction.get("owner_id"))
            ))
        return SharedTransactionsResponse(shared_transactions=items)

    async def shared_settlements(self, profile_id: str, since: Optional[datetime] = None) -> SharedSettlementsResponse:
        items = []
        for row in await self.participants.find_owned(SETTLEMENT_PARTICIPANTS, profile_id, since):
            settlement = await self.records.get_settlement(row["settlement_id"])
            if settlement is None:
                continue
            items.append(SharedSettlement(
                participation=_participation(row),
                settlement=_public(settlement),
                persons=await self._persons([settlement.get("from_person_id"), settlement.get("to_person_id")]),
                creator=await self._creator(settlement.get("owner_id"))
            ))
        return SharedSettlementsResponse(shared_settlements=items)

    async def shared_subscriptions(
        self,
        profile_id: str,
        since: Optional[datetime] = None
    ) -> SharedSubscriptionsResponse:
        items = []
        for row in await self.participants.find_owned(SUBSCRIPTION_PARTICIPANTS, profile_id, since):
            subscription = await self.records.get_subscription(row["subscription_id"])
            if subscription is None:
                continue
            activity = await self.records.get_subscription_activity(subscription["_id"])

            person_ids = [doc.get("person_id") for doc in activity["subscribers"]]
            person_ids += [doc.get("payer_id") for doc in activity["payments"]]
            for doc in activity["settlements"]:
                person_ids += [doc.get("from_person_id"), doc.get("to_person_id")]
            person_ids += [doc.get("to_person_id") for doc in activity["reminders"]]

            items.append(SharedSubscription(
                participation=_participation(row),
                subscription=_public(subscription),
                subscribers=[{"person_id": doc.get("person_id")} for doc in activity["subscribers"]],
                payments=[_public(doc) for doc in activity["payments"]],
                settlements=[_public(doc) for doc in activity["settlements"]],
                reminders=[_public(doc) for doc in activity["reminders"]],
                persons=await self._persons(person_ids),
                creator=await self._creator(subscription.get("owner_id"))
            ))
        return SharedSubscriptionsResponse(shared_subscriptions=items)

    async def _persons(self, person_ids: Iterable[Optional[str]]) -> List[SharedPerson]:
        unique_ids = list(dict.fromkeys(pid for pid in person_ids if pid))
        docs = await self.records.get_persons(unique_ids)
        return [
            SharedPerson(
                id=str(doc["_id"]),
                name=doc.get("name"),
                phone_number=doc.get("phone_number"),
                photo_url=doc.get("photo_url"),
                color_hex=doc.get("color_hex"),
                linked_profile_id=doc.get("linked_profile_id")
            )
            for doc in docs
        ]

    async def _creator(self, owner_id: Optional[str]) -> Optional[Creator]:
        if not owner_id:
            return None
        profile = await self.profiles.get_profile(owner_id)
        if profile is None:
            return None
        return Creator(id=profile.id, display_name=profile.display_name, photo_url=profile.avatar_url)
