from fastapi import APIRouter, Depends

from swisscoin.core.auth import get_current_profile
from swisscoin.db.mongo import get_db
from swisscoin.models.profile import ProfileInDB
from swisscoin.schemas.identity import (
    PhoneSendRequest,
    PhoneSendResponse,
    PhoneVerifyRequest,
    PhoneVerifyResponse,
)
from swisscoin.services.identity_service import IdentityService
from swisscoin.services.verification_service import TwilioVerifyClient, get_verification_provider

router = APIRouter()

@router.post("/send-otp", response_model=PhoneSendResponse)
async def send_otp(
    request: PhoneSendRequest,
    current_profile: ProfileInDB = Depends(get_current_profile),
    db = Depends(get_db),
    provider: TwilioVerifyClient = Depends(get_verification_provider)
):
    """Send a verification code to the given phone number."""
    service = IdentityService(db, provider)
    status = await service.send_code(current_profile, request.phone)
    return PhoneSendResponse(status=status)

@router.post("/verify-otp", response_model=PhoneVerifyResponse, response_model_exclude_none=True)
async def verify_otp(
    request: PhoneVerifyRequest,
    current_profile: ProfileInDB = Depends(get_current_profile),
    db = Depends(get_db),
    provider: TwilioVerifyClient = Depends(get_verification_provider)
):
    """Check a code and link the phone, merging any profile that already holds it."""
    service = IdentityService(db, provider)
    return await service.verify_phone(current_profile, request.phone, request.code)
