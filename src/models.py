import threading
from collections import Counter
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Dict, Union

from errors import MalformedRecord


class TransactionType(Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DISPUTE = "dispute"
    RESOLVE = "resolve"
    CHARGEBACK = "chargeback"

    @property
    def carries_amount(self) -> bool:
        return self in (TransactionType.DEPOSIT, TransactionType.WITHDRAWAL)


class DisputeStatus(Enum):
    CLEAN = "clean"
    DISPUTED = "disputed"
    CHARGED_BACK = "charged_back"


class ProcessingResult(Enum):
    SUCCESS = "success"
    IGNORED = "ignored"


@dataclass(frozen=True)
class Transaction:
    """Amount-bearing record (deposit or withdrawal), retained for later disputes."""

    transaction_type: TransactionType
    client_id: int
    transaction_id: int
    amount: Decimal

    def __post_init__(self):
        if not self.transaction_type.carries_amount:
            raise MalformedRecord(
                f"{self.transaction_type.value} cannot carry an amount",
                self.client_id,
                self.transaction_id,
            )
        if not isinstance(self.amount, Decimal) or not self.amount.is_finite() or self.amount < 0:
            raise MalformedRecord(
                f"{self.transaction_type.value} amount must be a non-negative decimal, got {self.amount!r}",
                self.client_id,
                self.transaction_id,
            )

    def __repr__(self) -> str:
        return f"Transaction({self.transaction_type.value}, client={self.client_id}, tx={self.transaction_id}, amount={self.amount})"


@dataclass(frozen=True)
class Mutation:
    """Reference-only record (dispute, resolve, chargeback) pointing at a prior Transaction."""

    transaction_type: TransactionType
    client_id: int
    transaction_id: int

    def __post_init__(self):
        if self.transaction_type.carries_amount:
            raise MalformedRecord(
                f"{self.transaction_type.value} requires an amount",
                self.client_id,
                self.transaction_id,
            )

    def __repr__(self) -> str:
        return f"Mutation({self.transaction_type.value}, client={self.client_id}, tx={self.transaction_id})"


Record = Union[Transaction, Mutation]


@dataclass
class ClientAccount:
    client_id: int
    available: Decimal = Decimal("0")
    held: Decimal = Decimal("0")
    locked: bool = False

    @property
    def total(self) -> Decimal:
        return self.available + self.held

    def credit(self, amount: Decimal) -> None:
        self.available += amount

    def debit(self, amount: Decimal) -> None:
        self.available -= amount

    def hold(self, amount: Decimal) -> None:
        # available may go negative when the disputed funds were already spent
        self.available -= amount
        self.held += amount

    def release_hold(self, amount: Decimal) -> None:
        self.held -= amount
        self.available += amount

    def remove_held(self, amount: Decimal) -> None:
        self.held -= amount

    def freeze(self) -> None:
        self.locked = True

    def snapshot(self) -> "AccountSnapshot":
        return AccountSnapshot(
            client_id=self.client_id,
            available=self.available,
            held=self.held,
            total=self.total,
            locked=self.locked,
        )


@dataclass(frozen=True)
class AccountSnapshot:
    client_id: int
    available: Decimal
    held: Decimal
    total: Decimal
    locked: bool


class ProcessingStats:
    """Thread-safe counters for tracking processing statistics."""

    def __init__(self):
        self._lock = threading.Lock()
        self.processed = 0
        self.ignored = 0
        self.malformed = 0
        self._reasons: Counter = Counter()

    def record_success(self):
        with self._lock:
            self.processed += 1

    def record_ignored(self, reason: str):
        with self._lock:
            self.ignored += 1
            self._reasons[reason] += 1

    def record_malformed(self):
        with self._lock:
            self.malformed += 1
            self._reasons["MalformedRecord"] += 1

    @property
    def reasons(self) -> Dict[str, int]:
        with self._lock:
            return dict(self._reasons)

    def summary(self) -> str:
        line = f"Processed: {self.processed}, Ignored: {self.ignored}, Malformed: {self.malformed}"
        reasons = self.reasons
        if reasons:
            breakdown = ", ".join(f"{name}={count}" for name, count in sorted(reasons.items()))
            line += f" ({breakdown})"
        return line
