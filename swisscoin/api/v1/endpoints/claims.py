from fastapi import APIRouter, Depends

from swisscoin.core.auth import get_current_profile
from swisscoin.db.mongo import get_db
from swisscoin.models.profile import ProfileInDB
from swisscoin.schemas.identity import ClaimPendingResponse
from swisscoin.services.identity_service import IdentityService

router = APIRouter()

@router.post("/pending", response_model=ClaimPendingResponse)
async def claim_pending(
    current_profile: ProfileInDB = Depends(get_current_profile),
    db = Depends(get_db)
):
    """Attach rows recorded against the caller's phone before they signed up."""
    service = IdentityService(db)
    return await service.claim_pending(current_profile.id)
