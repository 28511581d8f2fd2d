import argparse
import logging
import os
import sys
from typing import List, Optional

from engine import LedgerEngine
from errors import LedgerError
from writer import write_accounts

logger = logging.getLogger(__name__)

LOG_LEVEL_ENV = "LEDGER_LOG_LEVEL"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ledger-engine",
        description="Apply a CSV of transactions to client accounts and print the final balances.",
    )
    parser.add_argument("input", help="Path to the transactions CSV")
    parser.add_argument(
        "--log-level",
        default=os.environ.get(LOG_LEVEL_ENV, "WARNING"),
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help=f"Diagnostics level on stderr (default: ${LOG_LEVEL_ENV} or WARNING)",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=args.log_level,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    engine = LedgerEngine()
    try:
        accounts = engine.process_file(args.input)
    except LedgerError as e:
        logger.error(f"Aborting run: {e}")
        return 1

    write_accounts(accounts, sys.stdout)
    return 0


if __name__ == "__main__":
    sys.exit(main())
