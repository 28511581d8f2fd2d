"""
Property-based tests for the account state machine.

Random sequences of actions are applied to a single account; rejected
transactions must leave balances untouched and the balance identity
total == available + held must hold after every step.
"""

import sys
import os
from decimal import Decimal

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from account import Account
from errors import ErrorKind, LedgerError
from models import Chargeback, Deposit, Dispute, Resolve, Transaction, Withdrawal

amounts = st.decimals(
    min_value=Decimal("0.0001"),
    max_value=Decimal("1000000"),
    places=4,
    allow_nan=False,
    allow_infinity=False,
)
transaction_ids = st.integers(min_value=1, max_value=20)

actions = st.one_of(
    amounts.map(Deposit),
    amounts.map(Withdrawal),
    st.just(Dispute()),
    st.just(Resolve()),
    st.just(Chargeback()),
)

steps = st.lists(st.tuples(actions, transaction_ids), max_size=60)


def balances(account):
    return account.available, account.held, account.total


class TestAccountProperties:
    @settings(max_examples=200)
    @given(steps)
    def test_balance_identity_and_atomic_rejection(self, sequence):
        account = Account(client_id=1)

        for action, transaction_id in sequence:
            before = balances(account)
            was_locked = account.locked
            try:
                account.handle_transaction(Transaction(action, client_id=1, transaction_id=transaction_id))
            except LedgerError as e:
                assert balances(account) == before
                assert account.locked == was_locked
                if was_locked:
                    assert e.kind == ErrorKind.LOCKED_ACCOUNT
            else:
                assert not was_locked
            assert account.total == account.available + account.held

    @given(amounts, amounts)
    def test_deposit_then_withdrawal_round_trip(self, starting, amount):
        account = Account(client_id=1)
        account.handle_transaction(Transaction(Deposit(starting), client_id=1, transaction_id=1))
        before = balances(account)

        account.handle_transaction(Transaction(Deposit(amount), client_id=1, transaction_id=2))
        account.handle_transaction(Transaction(Withdrawal(amount), client_id=1, transaction_id=3))

        assert balances(account) == before

    @given(amounts)
    def test_dispute_then_resolve_is_identity(self, amount):
        account = Account(client_id=1)
        account.handle_transaction(Transaction(Deposit(amount), client_id=1, transaction_id=1))
        before = balances(account)

        account.handle_transaction(Transaction(Dispute(), client_id=1, transaction_id=1))
        assert account.held == amount
        assert account.total == before[2]

        account.handle_transaction(Transaction(Resolve(), client_id=1, transaction_id=1))
        assert balances(account) == before

    @given(st.lists(amounts, min_size=1, max_size=10))
    def test_held_never_exceeds_disputed_deposits(self, deposits):
        account = Account(client_id=1)
        for transaction_id, amount in enumerate(deposits, start=1):
            account.handle_transaction(Transaction(Deposit(amount), client_id=1, transaction_id=transaction_id))
        for transaction_id in range(1, len(deposits) + 1):
            account.handle_transaction(Transaction(Dispute(), client_id=1, transaction_id=transaction_id))
            with pytest.raises(LedgerError) as excinfo:
                account.handle_transaction(Transaction(Dispute(), client_id=1, transaction_id=transaction_id))
            assert excinfo.value.kind == ErrorKind.ALREADY_UNDER_DISPUTE

        assert account.held == sum(deposits, Decimal(0))
        assert account.available == Decimal(0)
