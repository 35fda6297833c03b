from fastapi import APIRouter, Depends

from swisscoin.core.auth import get_current_profile
from swisscoin.db.mongo import get_db
from swisscoin.models.profile import ProfileInDB
from swisscoin.schemas.sharing import (
    ReminderShareRequest,
    SettlementShareRequest,
    ShareBatchResponse,
    SubscriptionShareRequest,
    TransactionShareRequest,
)
from swisscoin.services.share_service import ShareService

router = APIRouter()

@router.post("/transactions", response_model=ShareBatchResponse)
async def share_transactions(
    request: TransactionShareRequest,
    current_profile: ProfileInDB = Depends(get_current_profile),
    db = Depends(get_db)
):
    service = ShareService(db)
    return await service.process_transaction_shares(current_profile.id, request.transaction_ids)

@router.post("/settlements", response_model=ShareBatchResponse)
async def share_settlements(
    request: SettlementShareRequest,
    current_profile: ProfileInDB = Depends(get_current_profile),
    db = Depends(get_db)
):
    service = ShareService(db)
    return await service.process_settlement_shares(current_profile.id, request.settlement_ids)

@router.post("/subscriptions", response_model=ShareBatchResponse)
async def share_subscriptions(
    request: SubscriptionShareRequest,
    current_profile: ProfileInDB = Depends(get_current_profile),
    db = Depends(get_db)
):
    service = ShareService(db)
    return await service.process_subscription_shares(current_profile.id, request.subscription_ids)

@router.post("/reminders", response_model=ShareBatchResponse)
async def share_reminders(
    request: ReminderShareRequest,
    current_profile: ProfileInDB = Depends(get_current_profile),
    db = Depends(get_db)
):
    service = ShareService(db)
    return await service.process_reminder_shares(current_profile.id, request.reminder_ids)
