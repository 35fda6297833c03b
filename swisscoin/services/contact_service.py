from typing import Any, List

from motor.motor_asyncio import AsyncIOMotorDatabase

from swisscoin.core.config import settings
from swisscoin.repositories.profile_repo import ProfileRepository
from swisscoin.schemas.identity import ContactDiscoveryResponse, ContactMatch
from swisscoin.utils.timed_cache import KeyedTimedCache


class ContactService:
    """Match hashed phone numbers from a caller's address book to profiles."""

    def __init__(self, db: AsyncIOMotorDatabase, cache: KeyedTimedCache[List[ContactMatch]]):
        self.profiles = ProfileRepository(db)
        self.cache = cache

    async def discover(self, caller_id: str, hashed_phones: Any, refresh: bool = False) -> ContactDiscoveryResponse:
        if not isinstance(hashed_phones, list):
            return ContactDiscoveryResponse()
        hashes = sorted({h for h in hashed_phones if isinstance(h, str) and h})
        if not hashes:
            return ContactDiscoveryResponse()

        key = (caller_id, tuple(hashes))
        if refresh:
            self.cache.invalidate(key)
        else:
            cached = self.cache.get(key)
            if cached is not None:
                return ContactDiscoveryResponse(matches=cached)

        profiles = await self.profiles.find_active_by_phone_hashes(hashes, exclude_id=caller_id)
        matches = [
            ContactMatch(
                phone_hash=profile.phone_hash,
                profile_id=profile.id,
                display_name=profile.display_name,
                photo_url=profile.avatar_url
            )
            for profile in profiles
        ]
        self.cache.set(key, matches)
        return ContactDiscoveryResponse(matches=matches)


contacts_cache: KeyedTimedCache[List[ContactMatch]] = KeyedTimedCache(settings.CONTACTS_CACHE_TTL_SECONDS)


def get_contacts_cache() -> KeyedTimedCache[List[ContactMatch]]:
    """FastAPI dependency."""
    return contacts_cache
