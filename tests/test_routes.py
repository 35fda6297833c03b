"""API tests: request parsing, auth and error rendering."""
from decimal import Decimal
from unittest.mock import AsyncMock, patch

from fastapi.testclient import TestClient

from swisscoin.core.auth import get_current_profile
from swisscoin.core.errors import TooManyAttemptsError
from swisscoin.main import app
from swisscoin.utils.phone import hash_phone_number
from tests.fakes import ALICE_PHONE, profile_doc

API = "/api/v1"


def dinner_snapshot(**overrides):
    snapshot = {
        "persons": [
            {"id": "alice", "name": "Alice"},
            {"id": "bob", "name": "Bob"},
            {"id": "carol", "name": "Carol"},
        ],
        "transactions": [
            {"id": "dinner", "amount": "90.00", "currency": "chf", "payer_id": "alice", "title": "Dinner"},
        ],
        "splits": [
            {"transaction_id": "dinner", "owed_by_id": p, "amount": "30.00"} for p in ("alice", "bob", "carol")
        ],
        "settlements": [],
        "subscriptions": [],
    }
    snapshot.update(overrides)
    return snapshot


class TestLifespan:
    """Test database connection lifecycle."""

    def test_lifespan_connects_and_closes(self):
        with patch("swisscoin.main.connect_to_mongo", new_callable=AsyncMock) as connect, \
                patch("swisscoin.main.close_mongo_connection", new_callable=AsyncMock) as close:
            with TestClient(app) as client:
                assert client.get("/").json() == {"message": "Welcome to Swiss Coin API"}
                connect.assert_awaited_once()
                close.assert_not_awaited()
            close.assert_awaited_once()


class TestAuth:
    """Test bearer-token handling."""

    def test_missing_token_rejected(self, test_client):
        app.dependency_overrides.pop(get_current_profile)
        response = test_client.post(f"{API}/claims/pending")

        assert response.status_code == 401
        assert response.json() == {"success": False, "error": "Unauthorized"}

    def test_invalid_token_rejected(self, test_client):
        app.dependency_overrides.pop(get_current_profile)
        response = test_client.post(
            f"{API}/claims/pending",
            headers={"Authorization": "Bearer not-a-jwt"}
        )
        assert response.status_code == 401

    def test_valid_token_accepted(self, test_client, valid_token):
        app.dependency_overrides.pop(get_current_profile)
        response = test_client.post(
            f"{API}/claims/pending",
            headers={"Authorization": f"Bearer {valid_token}"}
        )
        assert response.status_code == 200
        assert response.json()["claimed_transactions"] == 0


class TestPhone:
    """Test OTP endpoints."""

    def test_send_otp(self, test_client, provider):
        response = test_client.post(f"{API}/phone/send-otp", json={"phone": ALICE_PHONE})

        assert response.status_code == 200
        assert response.json() == {"success": True, "status": "pending"}
        provider.send_code.assert_awaited_once_with(ALICE_PHONE)

    def test_send_otp_invalid_phone(self, test_client):
        response = test_client.post(f"{API}/phone/send-otp", json={"phone": "12345"})

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Invalid phone number format"}

    def test_verify_otp_links_phone(self, test_client, fake_db, alice):
        fake_db["transaction_participants"].docs.append({
            "_id": "tp-1",
            "transaction_id": "tx-1",
            "phone_hash": hash_phone_number(ALICE_PHONE),
            "profile_id": None,
            "source_owner_id": "profile-bob",
        })

        response = test_client.post(f"{API}/phone/verify-otp", json={"phone": ALICE_PHONE, "code": "123456"})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["action"] == "phone_verified"
        assert "merged_profile_name" not in body
        assert body["claimed"]["transaction_ids"] == ["tx-1"]

    def test_verify_otp_merges(self, test_client, fake_db):
        fake_db["profiles"].docs.append(profile_doc("profile-old", "Old Alice", phone=ALICE_PHONE))

        response = test_client.post(f"{API}/phone/verify-otp", json={"phone": ALICE_PHONE, "code": "123456"})

        body = response.json()
        assert body["action"] == "accounts_merged"
        assert body["merged_profile_name"] == "Old Alice"
        assert body["data_transferred"]["persons"] == 0

    def test_verify_otp_bad_code_format(self, test_client):
        response = test_client.post(f"{API}/phone/verify-otp", json={"phone": ALICE_PHONE, "code": "12"})

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid code format"

    def test_verify_otp_too_many_attempts(self, test_client, provider):
        provider.check_code.side_effect = TooManyAttemptsError()

        response = test_client.post(f"{API}/phone/verify-otp", json={"phone": ALICE_PHONE, "code": "123456"})

        assert response.status_code == 429
        assert response.json()["success"] is False


class TestSharesAndContacts:
    """Test batch and discovery endpoints."""

    def test_share_non_list_is_noop(self, test_client):
        response = test_client.post(f"{API}/shares/subscriptions", json={"subscription_ids": "sub-1"})

        assert response.status_code == 200
        assert response.json() == {"processed": 0, "participants_created": 0}

    def test_share_transactions(self, test_client, fake_db):
        fake_db["persons"].docs.append({"_id": "person-bob", "phone_hash": hash_phone_number("+41797654321")})
        fake_db["transaction_splits"].docs.append(
            {"_id": "split-bob", "transaction_id": "tx-1", "owed_by_id": "person-bob", "amount": 30}
        )

        response = test_client.post(f"{API}/shares/transactions", json={"transaction_ids": ["tx-1"]})

        assert response.status_code == 200
        assert response.json() == {"processed": 1, "participants_created": 1}
        assert fake_db["transaction_participants"].docs[0]["source_owner_id"] == "profile-alice"

    def test_share_settlements_and_reminders_accept_empty_batches(self, test_client):
        for path, field in (("settlements", "settlement_ids"), ("reminders", "reminder_ids")):
            response = test_client.post(f"{API}/shares/{path}", json={field: []})
            assert response.json() == {"processed": 0, "participants_created": 0}

    def test_fetch_shared_without_body(self, test_client, fake_db):
        fake_db["settlements"].docs.append({"_id": "st-1", "amount": 30, "currency": "CHF"})
        fake_db["settlement_participants"].docs.append({
            "_id": "sp-1", "settlement_id": "st-1", "profile_id": "profile-alice",
            "status": "pending", "role": "participant",
        })

        response = test_client.post(f"{API}/shared/settlements")

        assert response.status_code == 200
        [item] = response.json()["shared_settlements"]
        assert item["participation"]["id"] == "sp-1"
        assert item["settlement"]["id"] == "st-1"
        assert item["creator"] is None

    def test_fetch_shared_since(self, test_client):
        response = test_client.post(f"{API}/shared/transactions", json={"since": "2026-01-01T00:00:00Z"})

        assert response.status_code == 200
        assert response.json() == {"shared_transactions": []}

    def test_discover(self, test_client, fake_db):
        fake_db["profiles"].docs.append(profile_doc("profile-bob", "Bob", phone="+41797654321"))

        response = test_client.post(
            f"{API}/contacts/discover",
            json={"hashed_phones": [hash_phone_number("+41797654321")]}
        )

        assert response.status_code == 200
        assert [m["profile_id"] for m in response.json()["matches"]] == ["profile-bob"]


class TestLedger:
    """Test stateless ledger computations."""

    def test_balance_against_counterpart(self, test_client):
        response = test_client.post(f"{API}/ledger/balance", json={
            "snapshot": dinner_snapshot(),
            "person_id": "bob",
            "counterpart_id": "alice",
        })

        assert response.status_code == 200
        body = response.json()
        assert {code: Decimal(amount) for code, amount in body["balances"].items()} == {"CHF": Decimal("-30")}
        assert body["has_negative"] is True

    def test_balance_after_settlement_is_empty(self, test_client):
        snapshot = dinner_snapshot(settlements=[
            {"from_person_id": "bob", "to_person_id": "alice", "amount": "30", "currency": "CHF"}
        ])
        response = test_client.post(f"{API}/ledger/balance", json={
            "snapshot": snapshot,
            "person_id": "bob",
            "counterpart_id": "alice",
        })

        assert response.json()["balances"] == {}

    def test_invalid_snapshot_rejected(self, test_client):
        snapshot = dinner_snapshot(transactions=[
            {"id": "dinner", "amount": "50", "currency": "CHF", "payer_id": "alice"}
        ])
        response = test_client.post(f"{API}/ledger/balance", json={"snapshot": snapshot, "person_id": "bob"})

        assert response.status_code == 400
        assert "exceeds amount" in response.json()["error"]

    def test_repeated_settlement_rejected(self, test_client):
        settlement = {"id": "s1", "from_person_id": "bob", "to_person_id": "alice", "amount": "30", "currency": "CHF"}
        snapshot = dinner_snapshot(settlements=[settlement, settlement])
        response = test_client.post(f"{API}/ledger/balance", json={
            "snapshot": snapshot,
            "person_id": "bob",
            "counterpart_id": "alice",
        })

        assert response.status_code == 400
        assert response.json()["error"] == "Settlement s1 already exists"

    def test_malformed_body_rejected(self, test_client):
        response = test_client.post(f"{API}/ledger/balance", json={"snapshot": dinner_snapshot()})

        assert response.status_code == 400
        assert response.json()["success"] is False

    def test_people_you_owe(self, test_client):
        response = test_client.post(f"{API}/ledger/people-you-owe", json={
            "snapshot": dinner_snapshot(),
            "current_user_id": "bob",
        })

        people = response.json()["people"]
        assert [p["person_id"] for p in people] == ["alice"]
        assert people[0]["display_name"] == "Alice"

    def test_summary(self, test_client):
        response = test_client.post(f"{API}/ledger/summary", json={
            "snapshot": dinner_snapshot(),
            "current_user_id": "alice",
        })

        body = response.json()
        assert Decimal(body["total_owed_to_you"]["CHF"]) == Decimal("60")
        assert body["total_you_owe"] == {}

    def test_monthly_subscriptions(self, test_client):
        response = test_client.post(f"{API}/ledger/subscriptions/monthly", json={
            "subscriptions": [
                {"owner_id": "alice", "name": "Gym", "amount": "10", "currency": "CHF", "cycle": "weekly"},
                {"owner_id": "bob", "name": "Cloud", "amount": "1200", "currency": "CHF", "cycle": "yearly"},
            ],
            "user_id": "alice",
        })

        body = response.json()
        assert Decimal(body["total"]["CHF"]) == Decimal("143.3")
        assert Decimal(body["user_share"]["CHF"]) == Decimal("43.3")
