"""Ledger write-time validation utilities."""
from decimal import Decimal
from typing import List

from swisscoin.models.ledger import FinancialTransaction, Settlement, TransactionSplit
from swisscoin.models.subscription import BillingCycle, Subscription


class LedgerValidationError(Exception):
    """Custom exception for ledger validation errors."""
    pass


def validate_transaction(
    transaction: FinancialTransaction,
    splits: List[TransactionSplit]
) -> None:
    """
    Validate a transaction together with its splits.

    Rules:
    - amount must be non-negative
    - every split must belong to this transaction
    - every split amount must be non-negative
    - sum of split amounts must not exceed the transaction amount
      (the unsplit remainder belongs to the payer)
    """
    if transaction.amount < 0:
        raise LedgerValidationError(
            f"Transaction '{transaction.title}' has negative amount: {transaction.amount}"
        )

    for split in splits:
        if split.transaction_id != transaction.id:
            raise LedgerValidationError(
                f"Split {split.id} references transaction {split.transaction_id}, "
                f"not {transaction.id}"
            )
        if split.amount < 0:
            raise LedgerValidationError(
                f"Transaction '{transaction.title}' has negative split: {split.amount}"
            )

    split_sum = sum((split.amount for split in splits), Decimal("0"))
    if split_sum > transaction.amount:
        raise LedgerValidationError(
            f"Transaction '{transaction.title}': split sum ({split_sum}) "
            f"exceeds amount ({transaction.amount})"
        )


def validate_settlement(settlement: Settlement) -> None:
    """Settlements move a positive amount between two different people."""
    if settlement.amount <= 0:
        raise LedgerValidationError(
            f"Settlement has non-positive amount: {settlement.amount}"
        )
    if settlement.from_person_id == settlement.to_person_id:
        raise LedgerValidationError("Settlement sender and receiver must differ")


def validate_subscription(subscription: Subscription) -> None:
    """
    Validate a subscription and its shares.

    Rules:
    - amount must be non-negative
    - custom cycles need custom_cycle_days
    - share amounts must be non-negative and sum to at most the amount
    """
    if subscription.amount < 0:
        raise LedgerValidationError(
            f"Subscription '{subscription.name}' has negative amount: {subscription.amount}"
        )

    if subscription.cycle == BillingCycle.CUSTOM and subscription.custom_cycle_days is None:
        raise LedgerValidationError(
            f"Subscription '{subscription.name}' uses a custom cycle without custom_cycle_days"
        )

    for share in subscription.shares:
        if share.amount < 0:
            raise LedgerValidationError(
                f"Subscription '{subscription.name}' has negative share: {share.amount}"
            )

    share_sum = sum((share.amount for share in subscription.shares), Decimal("0"))
    if share_sum > subscription.amount:
        raise LedgerValidationError(
            f"Subscription '{subscription.name}': share sum ({share_sum}) "
            f"exceeds amount ({subscription.amount})"
        )
