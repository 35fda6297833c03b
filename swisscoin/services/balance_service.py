"""
Balance engine - folds ledger entities into per-currency balances.

Sign convention (from the subject's point of view):
- negative bucket: the subject owes
- positive bucket: the subject is owed

The engine only reads the snapshot, so balances can be recomputed on every
read without caching.
"""

from typing import List, Optional, Tuple

from swisscoin.models.ledger import Person, Settlement
from swisscoin.models.money import CurrencyBalance
from swisscoin.repositories.snapshot import LedgerSnapshot


class BalanceService:
    def __init__(self, snapshot: LedgerSnapshot):
        self.snapshot = snapshot

    def balance(self, person_id: str, against: Optional[str] = None) -> CurrencyBalance:
        """
        Net position of a person, optionally restricted to one counterpart.

        1. Splits the person owes on someone else's transaction: subtract
        2. Splits others owe on the person's transactions: add
        3. Settlements sent: add; settlements received: subtract
        """
        result = CurrencyBalance()

        for split in self.snapshot.splits_owed_by(person_id):
            tx = self.snapshot.transactions[split.transaction_id]
            if tx.payer_id == person_id:
                continue
            if against is not None and tx.payer_id != against:
                continue
            result.subtract(tx.currency, split.amount)

        for tx in self.snapshot.transactions_paid_by(person_id):
            for split in self.snapshot.splits_for_transaction(tx.id):
                if split.owed_by_id == person_id:
                    continue
                if against is not None and split.owed_by_id != against:
                    continue
                result.add(tx.currency, split.amount)

        for settlement in self.snapshot.settlements_sent_by(person_id):
            if against is None or settlement.to_person_id == against:
                result.add(settlement.currency, settlement.amount)

        for settlement in self.snapshot.settlements_received_by(person_id):
            if against is None or settlement.from_person_id == against:
                result.subtract(settlement.currency, settlement.amount)

        return result

    def pairwise_balances(self, current_user_id: str) -> List[Tuple[Person, CurrencyBalance]]:
        """Current user's balance against every other active person."""
        return [
            (person, self.balance(current_user_id, against=person.id))
            for person in self.snapshot.active_persons()
            if person.id != current_user_id
        ]

    def people_you_owe(self, current_user_id: str) -> List[Tuple[Person, CurrencyBalance]]:
        """People the current user owes, largest debt first."""
        owed = [
            (person, balance)
            for person, balance in self.pairwise_balances(current_user_id)
            if balance.has_negative
        ]
        owed.sort(key=lambda pair: pair[1].negative_magnitude(), reverse=True)
        return owed

    def people_who_owe_you(self, current_user_id: str) -> List[Tuple[Person, CurrencyBalance]]:
        """People who owe the current user, largest amount first."""
        owing = [
            (person, balance)
            for person, balance in self.pairwise_balances(current_user_id)
            if balance.has_positive
        ]
        owing.sort(key=lambda pair: pair[1].positive_magnitude(), reverse=True)
        return owing

    def overall_summary(self, current_user_id: str) -> dict:
        """
        Totals across all counterparts.

        Each pairwise balance is split by sign per currency, so a debt in one
        currency never offsets a credit in another.
        """
        owed_to_you = CurrencyBalance()
        you_owe = CurrencyBalance()
        for _, balance in self.pairwise_balances(current_user_id):
            owed_to_you.merge(balance.positive_part())
            you_owe.merge(balance.negative_part().negated())
        return {
            "total_owed_to_you": owed_to_you,
            "total_you_owe": you_owe,
        }

    def settlement_history(self, person_id: str) -> List[Tuple[str, Settlement]]:
        """Sent and received settlements, newest first."""
        history = [("sent", s) for s in self.snapshot.settlements_sent_by(person_id)]
        history += [("received", s) for s in self.snapshot.settlements_received_by(person_id)]
        history.sort(key=lambda item: item[1].date, reverse=True)
        return history
