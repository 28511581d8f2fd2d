from dataclasses import replace
from decimal import Decimal, Inexact, localcontext
from typing import Dict, Optional

from errors import ErrorKind, InvariantViolation, LedgerError
from models import (
    EXACT_CONTEXT,
    ZERO,
    AccountSnapshot,
    Chargeback,
    Deposit,
    Dispute,
    Resolve,
    Transaction,
    Withdrawal,
)


class Account:
    """
    One client's balances and the deposits/withdrawals it may later have to look up.
    handle_transaction either applies an action completely or raises LedgerError
    without touching any state. Account never logs; the engine decides what a failure means.
    """

    def __init__(self, client_id: int):
        self.client_id = client_id
        self.available: Decimal = ZERO
        self.held: Decimal = ZERO
        self.total: Decimal = ZERO
        self.locked = False
        self._transactions: Dict[int, Transaction] = {}

    def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        """Retrieve stored transaction by ID."""
        return self._transactions.get(transaction_id)

    def handle_transaction(self, transaction: Transaction) -> None:
        if self.locked:
            raise self._error(ErrorKind.LOCKED_ACCOUNT, transaction)

        try:
            with localcontext(EXACT_CONTEXT):
                self._dispatch(transaction)
                self._check_balance()
        except Inexact as e:
            raise InvariantViolation(f"client {self.client_id}: balance arithmetic lost precision on {transaction}") from e

    def _dispatch(self, transaction: Transaction) -> None:
        match transaction.action:
            case Deposit(amount=amount):
                self._handle_deposit(transaction, amount)
            case Withdrawal(amount=amount):
                self._handle_withdrawal(transaction, amount)
            case Dispute():
                self._handle_dispute(transaction)
            case Resolve():
                self._handle_resolve(transaction)
            case Chargeback():
                self._handle_chargeback(transaction)
            case _:
                raise self._error(ErrorKind.UNDEFINED_ACTION, transaction)

    def snapshot(self) -> AccountSnapshot:
        return AccountSnapshot(
            client_id=self.client_id,
            available=self.available,
            held=self.held,
            total=self.total,
            locked=self.locked,
        )

    def _handle_deposit(self, transaction: Transaction, amount: Decimal) -> None:
        self._ensure_new_id(transaction)
        self.available += amount
        self.total += amount
        self._store(transaction)

    def _handle_withdrawal(self, transaction: Transaction, amount: Decimal) -> None:
        self._ensure_new_id(transaction)
        if self.available < amount:
            raise self._error(ErrorKind.ACCOUNT_BALANCE_NOT_ENOUGH, transaction)
        self.available -= amount
        self.total -= amount
        self._store(transaction)

    def _handle_dispute(self, transaction: Transaction) -> None:
        original = self._disputable(transaction)
        if original.under_dispute:
            raise self._error(ErrorKind.ALREADY_UNDER_DISPUTE, transaction)

        self.available -= original.amount
        self.held += original.amount
        self._transactions[original.transaction_id] = replace(original, under_dispute=True)

    def _handle_resolve(self, transaction: Transaction) -> None:
        original = self._disputed(transaction)

        self.held -= original.amount
        self.available += original.amount
        self._transactions[original.transaction_id] = replace(original, under_dispute=False)

    def _handle_chargeback(self, transaction: Transaction) -> None:
        original = self._disputed(transaction)

        self.held -= original.amount
        self.total -= original.amount
        self._transactions[original.transaction_id] = replace(original, under_dispute=False)
        self.locked = True

    def _disputable(self, transaction: Transaction) -> Transaction:
        """Look up the deposit a dispute, resolve or chargeback refers to."""
        original = self._transactions.get(transaction.transaction_id)
        if original is None:
            raise self._error(ErrorKind.NON_EXISTING_TRANSACTION_ID, transaction)
        # Withdrawals are never disputable: the funds already left the account.
        if not isinstance(original.action, Deposit):
            raise self._error(
                ErrorKind.UNDEFINED_BEHAVIOUR,
                transaction,
                detail=f"tx {original.transaction_id} is a {original.transaction_type.value}",
            )
        return original

    def _disputed(self, transaction: Transaction) -> Transaction:
        original = self._disputable(transaction)
        if not original.under_dispute:
            raise self._error(ErrorKind.NOT_UNDER_DISPUTE, transaction)
        return original

    def _ensure_new_id(self, transaction: Transaction) -> None:
        if transaction.transaction_id in self._transactions:
            raise self._error(ErrorKind.DUPLICATED_TRANSACTION_ID, transaction)

    def _store(self, transaction: Transaction) -> None:
        self._transactions[transaction.transaction_id] = replace(transaction, under_dispute=False)

    def _check_balance(self) -> None:
        if self.total != self.available + self.held:
            raise InvariantViolation(
                f"client {self.client_id}: total {self.total} != available {self.available} + held {self.held}"
            )

    def _error(self, kind: ErrorKind, transaction: Transaction, detail: Optional[str] = None) -> LedgerError:
        return LedgerError(kind, transaction.client_id, transaction.transaction_id, detail)
