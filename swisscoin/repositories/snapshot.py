"""
LedgerSnapshot - in-memory arena of ledger entities.

Entities live in flat tables keyed by id. Relationships are foreign-key ids,
and "traverse to related entities" is an explicit indexed query:

- splits_for_transaction / splits_owed_by
- transactions_paid_by
- settlements_sent_by / settlements_received_by

Writes validate invariants up front; reads assume they hold. Referenced
entities are tombstoned instead of removed.
"""

from collections import defaultdict
from typing import Dict, Iterable, List, Optional

from swisscoin.models.ledger import FinancialTransaction, Person, Settlement, TransactionSplit
from swisscoin.models.subscription import Subscription
from swisscoin.utils.ledger_validation import (
    LedgerValidationError,
    validate_settlement,
    validate_subscription,
    validate_transaction,
)


class LedgerSnapshot:
    """Id-keyed store of persons, transactions, splits, settlements and subscriptions."""

    def __init__(self):
        self.persons: Dict[str, Person] = {}
        self.transactions: Dict[str, FinancialTransaction] = {}
        self.splits: Dict[str, TransactionSplit] = {}
        self.settlements: Dict[str, Settlement] = {}
        self.subscriptions: Dict[str, Subscription] = {}

        self._splits_by_transaction: Dict[str, List[str]] = defaultdict(list)
        self._splits_by_person: Dict[str, List[str]] = defaultdict(list)
        self._transactions_by_payer: Dict[str, List[str]] = defaultdict(list)
        self._settlements_by_sender: Dict[str, List[str]] = defaultdict(list)
        self._settlements_by_receiver: Dict[str, List[str]] = defaultdict(list)

    @classmethod
    def from_entities(
        cls,
        persons: Iterable[Person] = (),
        transactions: Iterable[FinancialTransaction] = (),
        splits: Iterable[TransactionSplit] = (),
        settlements: Iterable[Settlement] = (),
        subscriptions: Iterable[Subscription] = ()
    ) -> "LedgerSnapshot":
        snapshot = cls()
        for person in persons:
            snapshot.add_person(person)

        splits_by_tx: Dict[str, List[TransactionSplit]] = defaultdict(list)
        for split in splits:
            splits_by_tx[split.transaction_id].append(split)

        transactions = list(transactions)
        known_ids = {tx.id for tx in transactions}
        orphans = set(splits_by_tx) - known_ids
        if orphans:
            raise LedgerValidationError(
                f"Splits reference unknown transactions: {sorted(orphans)}"
            )

        for tx in transactions:
            snapshot.add_transaction(tx, splits_by_tx.get(tx.id, []))
        for settlement in settlements:
            snapshot.add_settlement(settlement)
        for subscription in subscriptions:
            snapshot.add_subscription(subscription)
        return snapshot

    # ===== WRITES =====

    def add_person(self, person: Person) -> Person:
        self.persons[person.id] = person
        return person

    def add_transaction(
        self,
        transaction: FinancialTransaction,
        splits: List[TransactionSplit]
    ) -> FinancialTransaction:
        """Insert a transaction with its splits after validating both."""
        if transaction.id in self.transactions:
            raise LedgerValidationError(f"Transaction {transaction.id} already exists")
        seen = set()
        for split in splits:
            if split.id in self.splits or split.id in seen:
                raise LedgerValidationError(f"Split {split.id} already exists")
            seen.add(split.id)
        validate_transaction(transaction, splits)
        self._require_person(transaction.payer_id)
        for split in splits:
            self._require_person(split.owed_by_id)

        self.transactions[transaction.id] = transaction
        self._transactions_by_payer[transaction.payer_id].append(transaction.id)
        for split in splits:
            self.splits[split.id] = split
            self._splits_by_transaction[transaction.id].append(split.id)
            self._splits_by_person[split.owed_by_id].append(split.id)
        return transaction

    def add_settlement(self, settlement: Settlement) -> Settlement:
        if settlement.id in self.settlements:
            raise LedgerValidationError(f"Settlement {settlement.id} already exists")
        validate_settlement(settlement)
        self._require_person(settlement.from_person_id)
        self._require_person(settlement.to_person_id)

        self.settlements[settlement.id] = settlement
        self._settlements_by_sender[settlement.from_person_id].append(settlement.id)
        self._settlements_by_receiver[settlement.to_person_id].append(settlement.id)
        return settlement

    def add_subscription(self, subscription: Subscription) -> Subscription:
        validate_subscription(subscription)
        self._require_person(subscription.owner_id)
        for person_id in subscription.subscriber_ids:
            self._require_person(person_id)
        self.subscriptions[subscription.id] = subscription
        return subscription

    def archive_person(self, person_id: str) -> Person:
        person = self._require_person(person_id)
        archived = person.model_copy(update={"is_archived": True})
        self.persons[person_id] = archived
        return archived

    def remove_person(self, person_id: str) -> None:
        """Hard-delete a person that no ledger record references."""
        self._require_person(person_id)
        if self.is_referenced(person_id):
            raise LedgerValidationError(
                f"Person {person_id} is referenced by ledger records; archive instead"
            )
        del self.persons[person_id]

    def delete_transaction(self, transaction_id: str) -> FinancialTransaction:
        tx = self.transactions.get(transaction_id)
        if tx is None:
            raise LedgerValidationError(f"Unknown transaction {transaction_id}")
        deleted = tx.model_copy(update={"is_deleted": True})
        self.transactions[transaction_id] = deleted
        return deleted

    def delete_settlement(self, settlement_id: str) -> Settlement:
        settlement = self.settlements.get(settlement_id)
        if settlement is None:
            raise LedgerValidationError(f"Unknown settlement {settlement_id}")
        deleted = settlement.model_copy(update={"is_deleted": True})
        self.settlements[settlement_id] = deleted
        return deleted

    def archive_subscription(self, subscription_id: str) -> Subscription:
        subscription = self.subscriptions.get(subscription_id)
        if subscription is None:
            raise LedgerValidationError(f"Unknown subscription {subscription_id}")
        archived = subscription.model_copy(update={"is_archived": True})
        self.subscriptions[subscription_id] = archived
        return archived

    # ===== QUERIES =====

    def person(self, person_id: str) -> Optional[Person]:
        return self.persons.get(person_id)

    def active_persons(self) -> List[Person]:
        return [p for p in self.persons.values() if not p.is_archived]

    def transaction(self, transaction_id: str) -> Optional[FinancialTransaction]:
        return self.transactions.get(transaction_id)

    def splits_for_transaction(self, transaction_id: str) -> List[TransactionSplit]:
        return [self.splits[sid] for sid in self._splits_by_transaction.get(transaction_id, [])]

    def splits_owed_by(self, person_id: str) -> List[TransactionSplit]:
        """Splits owed by a person whose parent transaction is live."""
        result = []
        for split_id in self._splits_by_person.get(person_id, []):
            split = self.splits[split_id]
            if not self.transactions[split.transaction_id].is_deleted:
                result.append(split)
        return result

    def transactions_paid_by(self, person_id: str) -> List[FinancialTransaction]:
        return [
            self.transactions[tid]
            for tid in self._transactions_by_payer.get(person_id, [])
            if not self.transactions[tid].is_deleted
        ]

    def settlements_sent_by(self, person_id: str) -> List[Settlement]:
        return [
            self.settlements[sid]
            for sid in self._settlements_by_sender.get(person_id, [])
            if not self.settlements[sid].is_deleted
        ]

    def settlements_received_by(self, person_id: str) -> List[Settlement]:
        return [
            self.settlements[sid]
            for sid in self._settlements_by_receiver.get(person_id, [])
            if not self.settlements[sid].is_deleted
        ]

    def active_subscriptions(self) -> List[Subscription]:
        return [s for s in self.subscriptions.values() if s.counts_toward_totals]

    def is_referenced(self, person_id: str) -> bool:
        if self._transactions_by_payer.get(person_id) or self._splits_by_person.get(person_id):
            return True
        if self._settlements_by_sender.get(person_id) or self._settlements_by_receiver.get(person_id):
            return True
        return any(
            s.owner_id == person_id or person_id in s.subscriber_ids
            for s in self.subscriptions.values()
        )

    def _require_person(self, person_id: str) -> Person:
        person = self.persons.get(person_id)
        if person is None:
            raise LedgerValidationError(f"Unknown person {person_id}")
        return person
