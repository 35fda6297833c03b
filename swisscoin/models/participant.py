"""
Participant models - ledger rows shared with someone by phone hash.

Design principles:
- A row is recorded against a phone hash before its recipient has an account
- The owner field (profile_id, or to_profile_id for reminders) stays null
  until a profile with that phone hash claims the row
- Once owned, a row is only ever moved by an account merge
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class ParticipantStatus:
    PENDING = "pending"


@dataclass(frozen=True)
class ClaimTable:
    """A collection holding phone-hash-addressed rows."""
    collection: str
    owner_field: str
    parent_field: str
    label: str


TRANSACTION_PARTICIPANTS = ClaimTable("transaction_participants", "profile_id", "transaction_id", "transactions")
SETTLEMENT_PARTICIPANTS = ClaimTable("settlement_participants", "profile_id", "settlement_id", "settlements")
SUBSCRIPTION_PARTICIPANTS = ClaimTable("subscription_participants", "profile_id", "subscription_id", "subscriptions")
SHARED_REMINDERS = ClaimTable("shared_reminders", "to_profile_id", "_id", "reminders")

CLAIM_TABLES = (
    TRANSACTION_PARTICIPANTS,
    SETTLEMENT_PARTICIPANTS,
    SUBSCRIPTION_PARTICIPANTS,
    SHARED_REMINDERS,
)


class ParticipantInDB(BaseModel):
    """Common shape of the three participant collections, minus the parent id."""
    id: Any = Field(default=None, alias="_id")
    profile_id: Optional[str] = None
    phone_hash: Optional[str] = None
    status: str = ParticipantStatus.PENDING
    role: str = "participant"
    source_owner_id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True)

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=False, exclude={"id"})


class SharedReminderInDB(BaseModel):
    """A reminder sent to whoever holds a phone number."""
    id: Any = Field(default=None, alias="_id")
    reminder_id: str
    from_profile_id: str
    to_profile_id: Optional[str] = None
    phone_hash: str
    amount: Any = 0
    currency: Optional[str] = None
    message: Optional[str] = None
    is_read: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True)

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=False, exclude={"id"})


class AccountMergeLog(BaseModel):
    survivor_user_id: str
    absorbed_user_id: str
    phone_number: Optional[str] = None
    phone_hash: Optional[str] = None
    merge_reason: str = "phone_linking"
    tables_affected: Dict[str, int] = Field(default_factory=dict)
    created_at: datetime
