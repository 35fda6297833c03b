"""
Ledger entities - the durable records balances are derived from.

All references between entities are ids; LedgerSnapshot resolves them.
Amounts are Decimal, currency codes ISO-4217.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

from swisscoin.utils.phone import hash_phone_number


def _new_id() -> str:
    return str(uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LedgerModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(default_factory=_new_id)


class Person(LedgerModel):
    """A participant; local-only until linked to a verified profile."""
    name: Optional[str] = None
    phone_number: Optional[str] = None
    is_on_swiss_coin: bool = False
    linked_profile_id: Optional[str] = None
    is_archived: bool = False

    @property
    def is_claimed(self) -> bool:
        return self.linked_profile_id is not None

    @property
    def display_name(self) -> str:
        if not self.name or not self.name.strip():
            return "Unknown Person"
        return self.name

    @property
    def initials(self) -> str:
        if not self.name or not self.name.strip():
            return "?"
        words = self.name.split()
        if len(words) >= 2:
            return (words[0][0] + words[1][0]).upper()
        return words[0][:2].upper()

    @property
    def phone_hash(self) -> Optional[str]:
        if not self.phone_number or not self.phone_number.strip():
            return None
        return hash_phone_number(self.phone_number)


class FinancialTransaction(LedgerModel):
    """One spending event paid by a single person."""
    amount: Decimal
    currency: str
    payer_id: str
    title: str = ""
    category: Optional[str] = None
    note: Optional[str] = None
    date: datetime = Field(default_factory=_utcnow)
    is_deleted: bool = False

    @field_validator("currency")
    @classmethod
    def _upper_currency(cls, value: str) -> str:
        return value.strip().upper()


class TransactionSplit(LedgerModel):
    """A person's owed share of a transaction (in the transaction's currency)."""
    transaction_id: str
    owed_by_id: str
    amount: Decimal


class Settlement(LedgerModel):
    """A direct payment from one person to another."""
    from_person_id: str
    to_person_id: str
    amount: Decimal
    currency: str
    date: datetime = Field(default_factory=_utcnow)
    note: Optional[str] = None
    is_full_settlement: bool = False
    is_deleted: bool = False

    @field_validator("currency")
    @classmethod
    def _upper_currency(cls, value: str) -> str:
        return value.strip().upper()
