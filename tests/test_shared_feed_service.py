"""Tests for the records shared with a profile."""
from datetime import datetime, timedelta, timezone

import pytest

from swisscoin.services.shared_feed_service import SharedFeedService
from tests.fakes import profile_doc

NOW = datetime(2026, 3, 1, tzinfo=timezone.utc)


@pytest.fixture
def feed_db(fake_db, alice):
    """Bob shared a dinner, a settlement and a subscription with Alice."""
    fake_db["profiles"].docs.append(profile_doc("profile-bob", "Bob", avatar_url="https://img/bob.png"))
    fake_db["persons"].docs.extend([
        {"_id": "person-bob", "name": "Bob", "color_hex": "#00AAFF", "linked_profile_id": "profile-bob"},
        {"_id": "person-alice", "name": "Alice", "phone_number": "+41791234567"},
    ])

    fake_db["financial_transactions"].docs.append({
        "_id": "tx-dinner", "title": "Dinner", "amount": 60, "currency": "CHF",
        "owner_id": "profile-bob", "payer_id": "person-bob", "created_by_id": "person-bob",
    })
    fake_db["transaction_splits"].docs.append(
        {"_id": "split-alice", "transaction_id": "tx-dinner", "owed_by_id": "person-alice", "amount": 30}
    )
    fake_db["transaction_payers"].docs.append(
        {"_id": "payer-bob", "transaction_id": "tx-dinner", "paid_by_id": "person-bob", "amount": 60}
    )
    fake_db["settlements"].docs.append({
        "_id": "st-1", "amount": 30, "currency": "CHF", "owner_id": "profile-bob",
        "from_person_id": "person-alice", "to_person_id": "person-bob",
    })
    fake_db["subscriptions"].docs.append(
        {"_id": "sub-1", "name": "Streaming", "amount": 20, "currency": "CHF", "owner_id": "profile-ghost"}
    )
    fake_db["subscription_subscribers"].docs.append(
        {"_id": "sub-1:alice", "subscription_id": "sub-1", "person_id": "person-alice"}
    )
    fake_db["subscription_payments"].docs.append(
        {"_id": "pay-1", "subscription_id": "sub-1", "payer_id": "person-bob", "amount": 20}
    )

    def participation(collection, parent_field, parent_id, updated_at, profile_id="profile-alice"):
        fake_db[collection].docs.append({
            "_id": f"{collection}:{parent_id}",
            parent_field: parent_id,
            "profile_id": profile_id,
            "status": "pending",
            "role": "participant",
            "source_owner_id": "profile-bob",
            "updated_at": updated_at,
        })

    participation("transaction_participants", "transaction_id", "tx-dinner", NOW)
    participation("transaction_participants", "transaction_id", "tx-gone", NOW)
    participation("transaction_participants", "transaction_id", "tx-dinner", NOW, profile_id="profile-carol")
    participation("settlement_participants", "settlement_id", "st-1", NOW - timedelta(days=10))
    participation("subscription_participants", "subscription_id", "sub-1", NOW)
    return fake_db


@pytest.mark.asyncio
async def test_shared_transactions(feed_db, alice):
    result = await SharedFeedService(feed_db).shared_transactions(alice.id)

    [item] = result.shared_transactions
    assert item.participation.id == "transaction_participants:tx-dinner"
    assert item.participation.status == "pending"
    assert item.transaction["id"] == "tx-dinner"
    assert item.transaction["title"] == "Dinner"
    assert "_id" not in item.transaction
    assert [split["owed_by_id"] for split in item.splits] == ["person-alice"]
    assert [payer["paid_by_id"] for payer in item.payers] == ["person-bob"]
    assert {person.id for person in item.persons} == {"person-bob", "person-alice"}
    assert item.creator.id == "profile-bob"
    assert item.creator.photo_url == "https://img/bob.png"


@pytest.mark.asyncio
async def test_shared_settlements_since(feed_db, alice):
    service = SharedFeedService(feed_db)

    everything = await service.shared_settlements(alice.id)
    assert [item.settlement["id"] for item in everything.shared_settlements] == ["st-1"]
    assert everything.shared_settlements[0].creator.display_name == "Bob"

    recent = await service.shared_settlements(alice.id, since=NOW - timedelta(days=1))
    assert recent.shared_settlements == []


@pytest.mark.asyncio
async def test_shared_subscriptions(feed_db, alice):
    result = await SharedFeedService(feed_db).shared_subscriptions(alice.id)

    [item] = result.shared_subscriptions
    assert item.subscription["name"] == "Streaming"
    assert item.subscribers == [{"person_id": "person-alice"}]
    assert [payment["id"] for payment in item.payments] == ["pay-1"]
    assert item.settlements == []
    assert {person.id for person in item.persons} == {"person-alice", "person-bob"}
    # Owner profile no longer exists
    assert item.creator is None


@pytest.mark.asyncio
async def test_nothing_shared(fake_db, alice):
    service = SharedFeedService(fake_db)

    assert (await service.shared_transactions(alice.id)).shared_transactions == []
    assert (await service.shared_settlements(alice.id)).shared_settlements == []
    assert (await service.shared_subscriptions(alice.id)).shared_subscriptions == []
