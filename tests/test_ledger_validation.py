"""Tests for ledger write-time validation."""
from decimal import Decimal

import pytest

from swisscoin.models.ledger import FinancialTransaction, Settlement, TransactionSplit
from swisscoin.models.subscription import BillingCycle, Subscription, SubscriptionShare
from swisscoin.utils.ledger_validation import (
    LedgerValidationError,
    validate_settlement,
    validate_subscription,
    validate_transaction,
)


def make_transaction(amount="90.00"):
    return FinancialTransaction(id="tx-1", amount=Decimal(amount), currency="CHF", payer_id="alice", title="Dinner")


def make_split(owed_by, amount, transaction_id="tx-1"):
    return TransactionSplit(transaction_id=transaction_id, owed_by_id=owed_by, amount=Decimal(amount))


def test_valid_transaction_with_remainder():
    """Splits may sum to less than the amount; the payer keeps the rest."""
    validate_transaction(make_transaction(), [make_split("bob", "30"), make_split("carol", "30")])


def test_split_sum_exceeding_amount_rejected():
    with pytest.raises(LedgerValidationError, match="exceeds amount"):
        validate_transaction(make_transaction("50"), [make_split("bob", "30"), make_split("carol", "30")])


def test_negative_split_rejected():
    with pytest.raises(LedgerValidationError, match="negative split"):
        validate_transaction(make_transaction(), [make_split("bob", "-1")])


def test_negative_transaction_rejected():
    with pytest.raises(LedgerValidationError, match="negative amount"):
        validate_transaction(make_transaction("-5"), [])


def test_split_for_other_transaction_rejected():
    with pytest.raises(LedgerValidationError, match="references transaction"):
        validate_transaction(make_transaction(), [make_split("bob", "10", transaction_id="tx-2")])


def test_settlement_rules():
    validate_settlement(Settlement(from_person_id="bob", to_person_id="alice", amount=Decimal("30"), currency="CHF"))

    with pytest.raises(LedgerValidationError):
        validate_settlement(Settlement(from_person_id="bob", to_person_id="alice", amount=Decimal("0"), currency="CHF"))
    with pytest.raises(LedgerValidationError):
        validate_settlement(Settlement(from_person_id="bob", to_person_id="bob", amount=Decimal("5"), currency="CHF"))


def test_custom_cycle_requires_days():
    sub = Subscription(owner_id="alice", name="Gym", amount=Decimal("50"), currency="CHF", cycle=BillingCycle.CUSTOM)
    with pytest.raises(LedgerValidationError, match="custom_cycle_days"):
        validate_subscription(sub)


def test_subscription_shares_exceeding_amount_rejected():
    sub = Subscription(
        owner_id="alice",
        name="Streaming",
        amount=Decimal("20"),
        currency="CHF",
        is_shared=True,
        shares=[SubscriptionShare(person_id="bob", amount=Decimal("15")), SubscriptionShare(person_id="carol", amount=Decimal("10"))]
    )
    with pytest.raises(LedgerValidationError, match="share sum"):
        validate_subscription(sub)
