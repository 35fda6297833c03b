from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from swisscoin.models.ledger import FinancialTransaction, Person, Settlement, TransactionSplit
from swisscoin.models.money import CurrencyBalance
from swisscoin.models.subscription import Subscription
from swisscoin.repositories.snapshot import LedgerSnapshot


class LedgerSnapshotPayload(BaseModel):
    """Entities loaded by the caller's persistence layer."""
    persons: List[Person] = Field(default_factory=list)
    transactions: List[FinancialTransaction] = Field(default_factory=list)
    splits: List[TransactionSplit] = Field(default_factory=list)
    settlements: List[Settlement] = Field(default_factory=list)
    subscriptions: List[Subscription] = Field(default_factory=list)

    def to_snapshot(self) -> LedgerSnapshot:
        return LedgerSnapshot.from_entities(
            persons=self.persons,
            transactions=self.transactions,
            splits=self.splits,
            settlements=self.settlements,
            subscriptions=self.subscriptions
        )


class BalanceRequest(BaseModel):
    snapshot: LedgerSnapshotPayload
    person_id: str
    counterpart_id: Optional[str] = None


class BalanceResponse(BaseModel):
    person_id: str
    counterpart_id: Optional[str] = None
    balances: Dict[str, Decimal]
    has_negative: bool
    has_positive: bool

    @classmethod
    def from_balance(
        cls,
        person_id: str,
        balance: CurrencyBalance,
        counterpart_id: Optional[str] = None
    ) -> "BalanceResponse":
        return cls(
            person_id=person_id,
            counterpart_id=counterpart_id,
            balances=balance.as_dict(),
            has_negative=balance.has_negative,
            has_positive=balance.has_positive
        )


class RosterRequest(BaseModel):
    snapshot: LedgerSnapshotPayload
    current_user_id: str


class PersonBalance(BaseModel):
    person_id: str
    display_name: str
    balances: Dict[str, Decimal]


class RosterResponse(BaseModel):
    people: List[PersonBalance]


class SummaryResponse(BaseModel):
    total_owed_to_you: Dict[str, Decimal]
    total_you_owe: Dict[str, Decimal]


class MonthlyCostRequest(BaseModel):
    subscriptions: List[Subscription] = Field(default_factory=list)
    user_id: Optional[str] = None


class MonthlyCostResponse(BaseModel):
    total: Dict[str, Decimal]
    user_share: Optional[Dict[str, Decimal]] = None
