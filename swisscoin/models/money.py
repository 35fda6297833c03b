"""
Money values and per-currency balances.

Design principles:
- Arithmetic only between identical currency codes
- Mixed currencies are kept side by side in a CurrencyBalance, never converted
- Zero buckets are kept on write and pruned on read
"""

from decimal import Decimal
from typing import Dict, Iterator, Mapping, Tuple, Union

from pydantic import BaseModel, ConfigDict, field_validator

Number = Union[Decimal, int, str]


class CurrencyMismatchError(ValueError):
    """Raised when Money values of different currencies are combined."""
    pass


def _to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


class Money(BaseModel):
    """A signed amount in a single currency."""
    model_config = ConfigDict(frozen=True)

    amount: Decimal
    currency_code: str

    @field_validator("currency_code")
    @classmethod
    def _upper_code(cls, value: str) -> str:
        code = value.strip().upper()
        if len(code) != 3 or not code.isalpha():
            raise ValueError(f"Invalid ISO-4217 currency code: {value!r}")
        return code

    def _check(self, other: "Money") -> None:
        if other.currency_code != self.currency_code:
            raise CurrencyMismatchError(
                f"Cannot combine {self.currency_code} with {other.currency_code}"
            )

    def __add__(self, other: "Money") -> "Money":
        self._check(other)
        return Money(amount=self.amount + other.amount, currency_code=self.currency_code)

    def __sub__(self, other: "Money") -> "Money":
        self._check(other)
        return Money(amount=self.amount - other.amount, currency_code=self.currency_code)

    def __neg__(self) -> "Money":
        return Money(amount=-self.amount, currency_code=self.currency_code)

    def is_zero(self) -> bool:
        return self.amount == 0


class CurrencyBalance:
    """
    Signed amounts bucketed by currency code.

    Negative = the subject owes, positive = the subject is owed.
    """

    def __init__(self, initial: Mapping[str, Number] | None = None):
        self._buckets: Dict[str, Decimal] = {}
        for code, amount in (initial or {}).items():
            self.add(code, amount)

    # ===== WRITES (never prune) =====

    def add(self, currency_code: str, amount: Number) -> "CurrencyBalance":
        code = currency_code.upper()
        self._buckets[code] = self._buckets.get(code, Decimal("0")) + _to_decimal(amount)
        return self

    def subtract(self, currency_code: str, amount: Number) -> "CurrencyBalance":
        return self.add(currency_code, -_to_decimal(amount))

    def add_money(self, money: Money) -> "CurrencyBalance":
        return self.add(money.currency_code, money.amount)

    def merge(self, other: "CurrencyBalance") -> "CurrencyBalance":
        for code, amount in other._buckets.items():
            self.add(code, amount)
        return self

    def negated(self) -> "CurrencyBalance":
        result = CurrencyBalance()
        for code, amount in self._buckets.items():
            result.add(code, -amount)
        return result

    # ===== READS (zero buckets pruned) =====

    def get(self, currency_code: str) -> Decimal:
        return self._buckets.get(currency_code.upper(), Decimal("0"))

    def items(self) -> Iterator[Tuple[str, Decimal]]:
        for code in sorted(self._buckets):
            amount = self._buckets[code]
            if amount != 0:
                yield code, amount

    def as_dict(self) -> Dict[str, Decimal]:
        return dict(self.items())

    def currencies(self) -> list[str]:
        return [code for code, _ in self.items()]

    def as_money(self) -> list[Money]:
        return [Money(amount=amount, currency_code=code) for code, amount in self.items()]

    @property
    def is_zero(self) -> bool:
        return not self.as_dict()

    @property
    def has_negative(self) -> bool:
        return any(amount < 0 for _, amount in self.items())

    @property
    def has_positive(self) -> bool:
        return any(amount > 0 for _, amount in self.items())

    def negative_magnitude(self) -> Decimal:
        """Sum of absolute negative buckets. Only meaningful for ranking."""
        return sum((-amount for _, amount in self.items() if amount < 0), Decimal("0"))

    def positive_magnitude(self) -> Decimal:
        return sum((amount for _, amount in self.items() if amount > 0), Decimal("0"))

    def negative_part(self) -> "CurrencyBalance":
        return CurrencyBalance({code: amount for code, amount in self.items() if amount < 0})

    def positive_part(self) -> "CurrencyBalance":
        return CurrencyBalance({code: amount for code, amount in self.items() if amount > 0})

    def __eq__(self, other: object) -> bool:
        if isinstance(other, CurrencyBalance):
            return self.as_dict() == other.as_dict()
        if isinstance(other, Mapping):
            return self.as_dict() == CurrencyBalance(other).as_dict()
        return NotImplemented

    def __bool__(self) -> bool:
        return not self.is_zero

    def __repr__(self) -> str:
        return f"CurrencyBalance({self.as_dict()!r})"
