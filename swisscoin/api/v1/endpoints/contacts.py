from typing import List

from fastapi import APIRouter, Depends

from swisscoin.core.auth import get_current_profile
from swisscoin.db.mongo import get_db
from swisscoin.models.profile import ProfileInDB
from swisscoin.schemas.identity import ContactDiscoveryRequest, ContactDiscoveryResponse, ContactMatch
from swisscoin.services.contact_service import ContactService, get_contacts_cache
from swisscoin.utils.timed_cache import KeyedTimedCache

router = APIRouter()

@router.post("/discover", response_model=ContactDiscoveryResponse)
async def discover_contacts(
    request: ContactDiscoveryRequest,
    current_profile: ProfileInDB = Depends(get_current_profile),
    db = Depends(get_db),
    cache: KeyedTimedCache[List[ContactMatch]] = Depends(get_contacts_cache)
):
    """Find which of the caller's hashed contacts already have a profile."""
    service = ContactService(db, cache)
    return await service.discover(current_profile.id, request.hashed_phones, refresh=request.refresh)
