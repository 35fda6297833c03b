from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class PhoneSendRequest(BaseModel):
    """Schema for requesting a verification code"""
    phone: Optional[str] = None


class PhoneSendResponse(BaseModel):
    success: bool = True
    status: str = "pending"


class PhoneVerifyRequest(BaseModel):
    """Schema for checking a verification code"""
    phone: Optional[str] = None
    code: Optional[str] = None


class ClaimPendingResponse(BaseModel):
    """Rows attached to a profile by phone hash"""
    claimed_transactions: int = 0
    claimed_settlements: int = 0
    claimed_subscriptions: int = 0
    claimed_reminders: int = 0
    transaction_ids: List[str] = Field(default_factory=list)
    settlement_ids: List[str] = Field(default_factory=list)
    subscription_ids: List[str] = Field(default_factory=list)
    reminder_ids: List[str] = Field(default_factory=list)

    @property
    def total_claimed(self) -> int:
        return (
            self.claimed_transactions
            + self.claimed_settlements
            + self.claimed_subscriptions
            + self.claimed_reminders
        )


class PhoneVerifyResponse(BaseModel):
    success: bool = True
    action: str
    merged_profile_name: Optional[str] = None
    data_transferred: Optional[Dict[str, int]] = None
    claimed: Optional[ClaimPendingResponse] = None


class ContactDiscoveryRequest(BaseModel):
    hashed_phones: Any = None
    refresh: bool = False


class ContactMatch(BaseModel):
    phone_hash: str
    profile_id: str
    display_name: Optional[str] = None
    photo_url: Optional[str] = None


class ContactDiscoveryResponse(BaseModel):
    matches: List[ContactMatch] = Field(default_factory=list)
