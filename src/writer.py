import csv
import io
from decimal import Decimal
from typing import Mapping, TextIO

from models import AccountSnapshot, to_monetary

HEADER = ("client", "available", "held", "total", "locked")


def format_monetary(value: Decimal) -> str:
    """Format decimal with exactly 4 decimal places."""
    return f"{to_monetary(value):f}"


def render_accounts(accounts: Mapping[int, AccountSnapshot]) -> str:
    """Render the header and one CSV row per account, ordered by client id."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(HEADER)
    for client_id in sorted(accounts):
        account = accounts[client_id]
        writer.writerow((
            client_id,
            format_monetary(account.available),
            format_monetary(account.held),
            format_monetary(account.total),
            str(account.locked).lower(),
        ))
    return buffer.getvalue()


def write_accounts(accounts: Mapping[int, AccountSnapshot], stream: TextIO) -> None:
    """Write the whole report at once; nothing reaches the stream if rendering fails."""
    stream.write(render_accounts(accounts))
