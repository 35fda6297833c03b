from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

Document = Dict[str, Any]


# Batches of record ids to materialize participants for. Anything but a list is ignored.

class TransactionShareRequest(BaseModel):
    transaction_ids: Any = None


class SettlementShareRequest(BaseModel):
    settlement_ids: Any = None


class SubscriptionShareRequest(BaseModel):
    subscription_ids: Any = None


class ReminderShareRequest(BaseModel):
    reminder_ids: Any = None


class ShareBatchResponse(BaseModel):
    processed: int = 0
    participants_created: int = 0


class SharedFetchRequest(BaseModel):
    """Only return participations updated at or after `since`."""
    since: Optional[datetime] = None


class Participation(BaseModel):
    id: str
    status: str
    role: str


class SharedPerson(BaseModel):
    id: str
    name: Optional[str] = None
    phone_number: Optional[str] = None
    photo_url: Optional[str] = None
    color_hex: Optional[str] = None
    linked_profile_id: Optional[str] = None


class Creator(BaseModel):
    id: str
    display_name: Optional[str] = None
    photo_url: Optional[str] = None


class SharedTransaction(BaseModel):
    participation: Participation
    transaction: Document
    splits: List[Document] = Field(default_factory=list)
    payers: List[Document] = Field(default_factory=list)
    persons: List[SharedPerson] = Field(default_factory=list)
    creator: Optional[Creator] = None


class SharedSettlement(BaseModel):
    participation: Participation
    settlement: Document
    persons: List[SharedPerson] = Field(default_factory=list)
    creator: Optional[Creator] = None


class SharedSubscription(BaseModel):
    participation: Participation
    subscription: Document
    subscribers: List[Document] = Field(default_factory=list)
    payments: List[Document] = Field(default_factory=list)
    settlements: List[Document] = Field(default_factory=list)
    reminders: List[Document] = Field(default_factory=list)
    persons: List[SharedPerson] = Field(default_factory=list)
    creator: Optional[Creator] = None


class SharedTransactionsResponse(BaseModel):
    shared_transactions: List[SharedTransaction] = Field(default_factory=list)


class SharedSettlementsResponse(BaseModel):
    shared_settlements: List[SharedSettlement] = Field(default_factory=list)


class SharedSubscriptionsResponse(BaseModel):
    shared_subscriptions: List[SharedSubscription] = Field(default_factory=list)
