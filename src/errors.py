from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    # Input corruption: the rest of the stream cannot be trusted.
    UNDEFINED_ACTION = "undefined action"
    INVALID_IDENTIFIER = "string could not be parsed into an identifier"
    INVALID_AMOUNT = "string could not be parsed into a decimal amount"
    MALFORMED_RECORD = "record is missing required fields"
    SOURCE_UNAVAILABLE = "input source could not be read"

    # Business rules: only the offending transaction is rejected.
    ACCOUNT_BALANCE_NOT_ENOUGH = "not enough account balance"
    LOCKED_ACCOUNT = "account is locked"
    DUPLICATED_TRANSACTION_ID = "transaction id already used by this client"
    NON_EXISTING_TRANSACTION_ID = "referenced transaction does not exist"
    UNDEFINED_BEHAVIOUR = "only deposits can be disputed, resolved or charged back"
    NOT_UNDER_DISPUTE = "referenced transaction is not under dispute"
    ALREADY_UNDER_DISPUTE = "referenced transaction is already under dispute"


class LedgerError(Exception):
    """
    A failure reported while decoding or applying a transaction.
    Carries only what went wrong; whether it halts the run is decided by the engine.
    """

    def __init__(
        self,
        kind: ErrorKind,
        client_id: Optional[int] = None,
        transaction_id: Optional[int] = None,
        detail: Optional[str] = None,
    ):
        self.kind = kind
        self.client_id = client_id
        self.transaction_id = transaction_id
        self.detail = detail
        super().__init__(str(self))

    def __str__(self) -> str:
        message = self.kind.value
        if self.client_id is not None:
            message += f" (client={self.client_id}, tx={self.transaction_id})"
        if self.detail:
            message += f": {self.detail}"
        return message


class InvariantViolation(AssertionError):
    """Internal defect: an account's balances stopped adding up."""
