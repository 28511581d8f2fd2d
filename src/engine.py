import logging
from typing import Dict, Iterable

from account import Account
from errors import ErrorKind, LedgerError
from models import AccountSnapshot, ProcessingStats, Transaction
from reader import read_transactions

logger = logging.getLogger(__name__)

# Input corruption: nothing after this point can be trusted, abort the run.
FATAL_ERRORS = frozenset({
    ErrorKind.UNDEFINED_ACTION,
    ErrorKind.INVALID_IDENTIFIER,
    ErrorKind.INVALID_AMOUNT,
    ErrorKind.MALFORMED_RECORD,
    ErrorKind.SOURCE_UNAVAILABLE,
})

# Business-rule violations: skip the transaction and keep going.
RECOVERABLE_ERRORS = frozenset({
    ErrorKind.ACCOUNT_BALANCE_NOT_ENOUGH,
    ErrorKind.LOCKED_ACCOUNT,
    ErrorKind.DUPLICATED_TRANSACTION_ID,
    ErrorKind.NON_EXISTING_TRANSACTION_ID,
    ErrorKind.UNDEFINED_BEHAVIOUR,
    ErrorKind.NOT_UNDER_DISPUTE,
    ErrorKind.ALREADY_UNDER_DISPUTE,
})


def is_recoverable(error: LedgerError) -> bool:
    """Unknown kinds are treated as fatal."""
    return error.kind in RECOVERABLE_ERRORS


class LedgerEngine:
    """
    Applies a stream of transactions to per-client accounts, strictly in arrival order.
    Accounts are created the first time a client id is seen and kept for the whole run.
    """

    def __init__(self):
        self._accounts: Dict[int, Account] = {}
        self.stats = ProcessingStats()

    def process_file(self, filepath: str) -> Dict[int, AccountSnapshot]:
        """Process CSV file and return final account states."""
        logger.info(f"Processing transactions from {filepath}")
        return self.process(read_transactions(filepath))

    def process(self, transactions: Iterable[Transaction]) -> Dict[int, AccountSnapshot]:
        """
        Apply every transaction, then return a snapshot of every account seen.

        Raises:
            LedgerError: on the first fatal error, either from decoding the stream
                or from applying a transaction. No snapshot is produced in that case.
        """
        for transaction in transactions:
            self._apply(transaction)

        logger.info(
            f"Processed: {self.stats.processed}, "
            f"Skipped: {self.stats.skipped}, "
            f"Accounts: {len(self._accounts)}"
        )
        return self.snapshot()

    def snapshot(self) -> Dict[int, AccountSnapshot]:
        return {client_id: account.snapshot() for client_id, account in self._accounts.items()}

    def get_or_create_account(self, client_id: int) -> Account:
        """Get existing account or create new one."""
        account = self._accounts.get(client_id)
        if account is None:
            account = Account(client_id)
            self._accounts[client_id] = account
        return account

    def _apply(self, transaction: Transaction) -> None:
        account = self.get_or_create_account(transaction.client_id)
        try:
            account.handle_transaction(transaction)
        except LedgerError as e:
            if not is_recoverable(e):
                raise
            self.stats.record_skip(e.kind)
            logger.warning(f"Skipping {transaction}: {e}")
            return
        self.stats.record_success()
