from datetime import date
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from swisscoin.models.ledger import LedgerModel


class BillingCycle(str, Enum):
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"
    CUSTOM = "custom"


class BillingStatus(str, Enum):
    UPCOMING = "upcoming"
    DUE = "due"
    OVERDUE = "overdue"
    PAUSED = "paused"


class SubscriptionShare(BaseModel):
    """A subscriber's per-cycle share."""
    model_config = ConfigDict(frozen=True)

    person_id: str
    amount: Decimal


class Subscription(LedgerModel):
    """
    A recurring shared cost.

    `amount` is the per-cycle total. Whatever the shares leave unassigned is
    carried by the owner.
    """
    owner_id: str
    name: str
    amount: Decimal
    currency: str
    cycle: BillingCycle = BillingCycle.MONTHLY
    custom_cycle_days: Optional[int] = None
    start_date: Optional[date] = None
    is_shared: bool = False
    is_active: bool = True
    is_archived: bool = False
    shares: List[SubscriptionShare] = Field(default_factory=list)

    @field_validator("currency")
    @classmethod
    def _upper_currency(cls, value: str) -> str:
        return value.strip().upper()

    @property
    def counts_toward_totals(self) -> bool:
        return self.is_active and not self.is_archived

    @property
    def subscriber_ids(self) -> List[str]:
        return [share.person_id for share in self.shares]
