from collections import Counter
from dataclasses import dataclass, field
from decimal import (
    Context,
    Decimal,
    DivisionByZero,
    Inexact,
    InvalidOperation,
    Overflow,
    ROUND_HALF_EVEN,
)
from enum import Enum
from typing import Optional, Union

PRECISION = 4
MONETARY_QUANTUM = Decimal(1).scaleb(-PRECISION)
ZERO = Decimal(0).quantize(MONETARY_QUANTUM)

# Single amounts stay below 10**20; balances get 64 significant digits, so no
# realistic number of transactions can make a sum round.
MAX_AMOUNT = Decimal(10) ** 20
MONETARY_CONTEXT = Context(
    prec=64,
    rounding=ROUND_HALF_EVEN,
    traps=[InvalidOperation, DivisionByZero, Overflow],
)
# Balance arithmetic must be exact: any rounding is an internal defect.
EXACT_CONTEXT = MONETARY_CONTEXT.copy()
EXACT_CONTEXT.traps[Inexact] = True


def to_monetary(value: Decimal) -> Decimal:
    """Quantize a decimal to the fixed 4 fractional digits used for all balances."""
    return value.quantize(MONETARY_QUANTUM, context=MONETARY_CONTEXT)


class TransactionType(Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DISPUTE = "dispute"
    RESOLVE = "resolve"
    CHARGEBACK = "chargeback"


@dataclass(frozen=True)
class Deposit:
    amount: Decimal


@dataclass(frozen=True)
class Withdrawal:
    amount: Decimal


@dataclass(frozen=True)
class Dispute:
    pass


@dataclass(frozen=True)
class Resolve:
    pass


@dataclass(frozen=True)
class Chargeback:
    pass


Action = Union[Deposit, Withdrawal, Dispute, Resolve, Chargeback]

ACTION_TYPES = {
    Deposit: TransactionType.DEPOSIT,
    Withdrawal: TransactionType.WITHDRAWAL,
    Dispute: TransactionType.DISPUTE,
    Resolve: TransactionType.RESOLVE,
    Chargeback: TransactionType.CHARGEBACK,
}


@dataclass(frozen=True)
class Transaction:
    action: Action
    client_id: int
    transaction_id: int
    under_dispute: bool = False

    @property
    def transaction_type(self) -> TransactionType:
        return ACTION_TYPES[type(self.action)]

    @property
    def amount(self) -> Optional[Decimal]:
        """Monetary amount, only carried by deposits and withdrawals."""
        return getattr(self.action, "amount", None)

    def __repr__(self) -> str:
        return f"Transaction({self.transaction_type.value}, client={self.client_id}, tx={self.transaction_id}, amount={self.amount})"


@dataclass(frozen=True)
class AccountSnapshot:
    client_id: int
    available: Decimal
    held: Decimal
    total: Decimal
    locked: bool


@dataclass
class ProcessingStats:
    """Counters for applied and skipped transactions."""

    processed: int = 0
    skipped: int = 0
    skipped_by_kind: Counter = field(default_factory=Counter)

    def record_success(self) -> None:
        self.processed += 1

    def record_skip(self, kind) -> None:
        self.skipped += 1
        self.skipped_by_kind[kind] += 1
