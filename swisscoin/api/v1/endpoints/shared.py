from typing import Optional

from fastapi import APIRouter, Depends

from swisscoin.core.auth import get_current_profile
from swisscoin.db.mongo import get_db
from swisscoin.models.profile import ProfileInDB
from swisscoin.schemas.sharing import (
    SharedFetchRequest,
    SharedSettlementsResponse,
    SharedSubscriptionsResponse,
    SharedTransactionsResponse,
)
from swisscoin.services.shared_feed_service import SharedFeedService

router = APIRouter()

def _since(request: Optional[SharedFetchRequest]):
    return request.since if request else None

@router.post("/transactions", response_model=SharedTransactionsResponse)
async def fetch_shared_transactions(
    request: Optional[SharedFetchRequest] = None,
    current_profile: ProfileInDB = Depends(get_current_profile),
    db = Depends(get_db)
):
    """Transactions other people shared with the current profile."""
    return await SharedFeedService(db).shared_transactions(current_profile.id, _since(request))

@router.post("/settlements", response_model=SharedSettlementsResponse)
async def fetch_shared_settlements(
    request: Optional[SharedFetchRequest] = None,
    current_profile: ProfileInDB = Depends(get_current_profile),
    db = Depends(get_db)
):
    return await SharedFeedService(db).shared_settlements(current_profile.id, _since(request))

@router.post("/subscriptions", response_model=SharedSubscriptionsResponse)
async def fetch_shared_subscriptions(
    request: Optional[SharedFetchRequest] = None,
    current_profile: ProfileInDB = Depends(get_current_profile),
    db = Depends(get_db)
):
    return await SharedFeedService(db).shared_subscriptions(current_profile.id, _since(request))
