from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from swisscoin.core.auth import create_access_token, get_current_profile
from swisscoin.db.mongo import get_db
from swisscoin.main import app
from swisscoin.models.profile import ProfileInDB
from swisscoin.services.contact_service import get_contacts_cache
from swisscoin.services.verification_service import TwilioVerifyClient, get_verification_provider
from swisscoin.utils.timed_cache import KeyedTimedCache
from tests.fakes import FakeClient, profile_doc


@pytest.fixture
def fake_client() -> FakeClient:
    return FakeClient()


@pytest.fixture
def fake_db(fake_client):
    """In-memory database with session/transaction support."""
    return fake_client["swisscoin_test"]


@pytest.fixture
def provider():
    """Verification provider that approves everything unless told otherwise."""
    mock = AsyncMock(spec=TwilioVerifyClient)
    mock.send_code.return_value = "pending"
    mock.check_code.return_value = None
    return mock


@pytest.fixture
def alice(fake_db) -> ProfileInDB:
    """Signed-up profile with no phone yet."""
    doc = profile_doc("profile-alice", "Alice")
    fake_db["profiles"].docs.append(doc)
    return ProfileInDB(**doc)


@pytest.fixture
def valid_token(alice) -> str:
    return create_access_token(alice.id)


@pytest.fixture
def test_client(fake_db, provider, alice):
    """API client wired to the in-memory database, authenticated as Alice."""
    app.dependency_overrides[get_db] = lambda: fake_db
    app.dependency_overrides[get_current_profile] = lambda: alice
    app.dependency_overrides[get_verification_provider] = lambda: provider
    app.dependency_overrides[get_contacts_cache] = lambda: KeyedTimedCache(300)

    # No context manager: startup would connect to a real MongoDB.
    client = TestClient(app)
    yield client

    app.dependency_overrides.clear()
