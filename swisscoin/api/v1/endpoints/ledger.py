from fastapi import APIRouter, Depends, HTTPException, status

from swisscoin.core.auth import get_current_profile
from swisscoin.models.profile import ProfileInDB
from swisscoin.repositories.snapshot import LedgerSnapshot
from swisscoin.schemas.ledger import (
    BalanceRequest,
    BalanceResponse,
    LedgerSnapshotPayload,
    MonthlyCostRequest,
    MonthlyCostResponse,
    PersonBalance,
    RosterRequest,
    RosterResponse,
    SummaryResponse,
)
from swisscoin.services.balance_service import BalanceService
from swisscoin.services.subscription_service import roster_monthly_total, user_monthly_share
from swisscoin.utils.ledger_validation import LedgerValidationError

router = APIRouter()

def _load(payload: LedgerSnapshotPayload) -> LedgerSnapshot:
    try:
        return payload.to_snapshot()
    except LedgerValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

def _roster(pairs) -> RosterResponse:
    return RosterResponse(people=[
        PersonBalance(person_id=person.id, display_name=person.display_name, balances=balance.as_dict())
        for person, balance in pairs
    ])

@router.post("/balance", response_model=BalanceResponse)
async def get_balance(
    request: BalanceRequest,
    current_profile: ProfileInDB = Depends(get_current_profile)
):
    """Net balance of a person, overall or against a single counterpart."""
    service = BalanceService(_load(request.snapshot))
    balance = service.balance(request.person_id, against=request.counterpart_id)
    return BalanceResponse.from_balance(request.person_id, balance, request.counterpart_id)

@router.post("/people-you-owe", response_model=RosterResponse)
async def people_you_owe(
    request: RosterRequest,
    current_profile: ProfileInDB = Depends(get_current_profile)
):
    service = BalanceService(_load(request.snapshot))
    return _roster(service.people_you_owe(request.current_user_id))

@router.post("/people-who-owe-you", response_model=RosterResponse)
async def people_who_owe_you(
    request: RosterRequest,
    current_profile: ProfileInDB = Depends(get_current_profile)
):
    service = BalanceService(_load(request.snapshot))
    return _roster(service.people_who_owe_you(request.current_user_id))

@router.post("/summary", response_model=SummaryResponse)
async def get_summary(
    request: RosterRequest,
    current_profile: ProfileInDB = Depends(get_current_profile)
):
    """Totals owed in each direction, bucketed by currency."""
    service = BalanceService(_load(request.snapshot))
    summary = service.overall_summary(request.current_user_id)
    return SummaryResponse(
        total_owed_to_you=summary["total_owed_to_you"].as_dict(),
        total_you_owe=summary["total_you_owe"].as_dict()
    )

@router.post("/subscriptions/monthly", response_model=MonthlyCostResponse)
async def monthly_subscription_cost(
    request: MonthlyCostRequest,
    current_profile: ProfileInDB = Depends(get_current_profile)
):
    """Monthly-equivalent totals, and the user's share when user_id is given."""
    total = roster_monthly_total(request.subscriptions)
    user_share = None
    if request.user_id is not None:
        user_share = user_monthly_share(request.subscriptions, request.user_id).as_dict()
    return MonthlyCostResponse(total=total.as_dict(), user_share=user_share)
