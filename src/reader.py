import csv
from decimal import Decimal, InvalidOperation
from typing import Iterable, Iterator, List, Sequence

from errors import ErrorKind, LedgerError
from models import (
    MAX_AMOUNT,
    Action,
    Chargeback,
    Deposit,
    Dispute,
    Resolve,
    Transaction,
    TransactionType,
    Withdrawal,
    to_monetary,
)

MAX_CLIENT_ID = 2**16 - 1
MAX_TRANSACTION_ID = 2**32 - 1


def read_transactions(filepath: str) -> Iterator[Transaction]:
    """
    Lazily decode a CSV file into transactions, one row at a time.
    Blank lines are ignored and the first non-blank row is the header.

    Raises:
        LedgerError: SOURCE_UNAVAILABLE if the file cannot be opened, read or
            decoded as UTF-8, or any decoding kind raised by parse_record.
    """
    try:
        with open(filepath, "r", encoding="utf-8", errors="strict", newline="") as f:
            rows = _non_blank_rows(csv.reader(f, skipinitialspace=True))
            next(rows, None)
            for fields in rows:
                yield parse_record(fields)
    except (OSError, UnicodeDecodeError, csv.Error) as e:
        raise LedgerError(ErrorKind.SOURCE_UNAVAILABLE, detail=f"{filepath}: {e}") from e


def _non_blank_rows(reader: Iterable[List[str]]) -> Iterator[List[str]]:
    for row in reader:
        fields = [value.strip() for value in row]
        if any(fields):
            yield fields


def parse_record(fields: Sequence[str]) -> Transaction:
    """Decode one row of trimmed fields: type, client, tx[, amount]."""
    if len(fields) < 3:
        raise LedgerError(ErrorKind.MALFORMED_RECORD, detail=repr(list(fields)))

    try:
        transaction_type = TransactionType(fields[0])
    except ValueError:
        raise LedgerError(ErrorKind.UNDEFINED_ACTION, detail=repr(fields[0])) from None

    client_id = _parse_identifier(fields[1], MAX_CLIENT_ID)
    transaction_id = _parse_identifier(fields[2], MAX_TRANSACTION_ID)
    amount_str = fields[3] if len(fields) > 3 else ""

    return Transaction(
        action=_build_action(transaction_type, amount_str),
        client_id=client_id,
        transaction_id=transaction_id,
    )


def _build_action(transaction_type: TransactionType, amount_str: str) -> Action:
    match transaction_type:
        case TransactionType.DEPOSIT:
            return Deposit(_parse_amount(amount_str))
        case TransactionType.WITHDRAWAL:
            return Withdrawal(_parse_amount(amount_str))
        case TransactionType.DISPUTE:
            return Dispute()
        case TransactionType.RESOLVE:
            return Resolve()
        case TransactionType.CHARGEBACK:
            return Chargeback()


def _parse_identifier(value: str, upper_bound: int) -> int:
    # int() would also accept "+5", "1_000" and surrounding whitespace
    if not (value.isascii() and value.isdigit()):
        raise LedgerError(ErrorKind.INVALID_IDENTIFIER, detail=repr(value))
    identifier = int(value)
    if identifier > upper_bound:
        raise LedgerError(ErrorKind.INVALID_IDENTIFIER, detail=f"{value} exceeds {upper_bound}")
    return identifier


def _parse_amount(value: str) -> Decimal:
    try:
        amount = Decimal(value)
        if amount.is_finite() and abs(amount) < MAX_AMOUNT:
            return to_monetary(amount)
    except InvalidOperation:
        pass
    raise LedgerError(ErrorKind.INVALID_AMOUNT, detail=repr(value))
