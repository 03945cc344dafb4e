import csv
import sys
import logging
from decimal import Decimal
from typing import Iterable, List, Optional, TextIO

from engine import LedgerEngine
from models import ClientAccount, quantize_amount

USAGE = "Usage: toy-ledger [-v|--verbose] <input.csv>"
OUTPUT_HEADER = ["client", "available", "held", "total", "locked"]


def format_decimal(value: Decimal) -> str:
    """Format decimal with exactly 4 decimal places."""
    return f"{quantize_amount(value):f}"


def write_snapshot(accounts: Iterable[ClientAccount], stream: TextIO) -> None:
    writer = csv.writer(stream, lineterminator="\n")
    writer.writerow(OUTPUT_HEADER)
    for account in accounts:
        writer.writerow([
            account.client_id,
            format_decimal(account.available),
            format_decimal(account.held),
            format_decimal(account.total),
            str(account.locked).lower(),
        ])


def main(argv: Optional[List[str]] = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)

    verbose = False
    for flag in ("-v", "--verbose"):
        while flag in args:
            args.remove(flag)
            verbose = True

    if len(args) != 1:
        print(USAGE, file=sys.stderr)
        return 1

    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    filepath = args[0]
    engine = LedgerEngine()
    try:
        accounts = engine.process_file(filepath)
    except OSError as e:
        print(f"error: cannot read {filepath}: {e.strerror or e}", file=sys.stderr)
        return 1
    except UnicodeDecodeError as e:
        print(f"error: cannot read {filepath}: not valid UTF-8 ({e.reason} at byte {e.start})", file=sys.stderr)
        return 1

    write_snapshot(accounts, sys.stdout)
    return 0


if __name__ == "__main__":
    sys.exit(main())
