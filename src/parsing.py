import csv
import logging
from decimal import Decimal, InvalidOperation
from typing import Callable, Dict, Iterator, Optional

from models import Transaction, TransactionType, MAX_AMOUNT, MAX_CLIENT_ID, MAX_TRANSACTION_ID, quantize_amount

logger = logging.getLogger(__name__)


class MalformedRecordError(ValueError):
    """Raised when a CSV row cannot be turned into a Transaction."""


def _parse_id(value: str, field: str, upper: int) -> int:
    try:
        parsed = int(value)
    except ValueError:
        raise MalformedRecordError(f"{field} is not an integer: {value!r}") from None
    if not 0 <= parsed <= upper:
        raise MalformedRecordError(f"{field} out of range: {parsed}")
    return parsed


def _parse_amount(value: str) -> Decimal:
    try:
        amount = Decimal(value)
    except InvalidOperation:
        raise MalformedRecordError(f"amount is not a number: {value!r}") from None
    if not amount.is_finite():
        raise MalformedRecordError(f"amount is not finite: {value!r}")
    if amount < 0:
        raise MalformedRecordError(f"amount is negative: {value}")
    if amount > MAX_AMOUNT:
        raise MalformedRecordError(f"amount out of range: {value}")
    return quantize_amount(amount)


def parse_row(row: Dict[Optional[str], Optional[str]]) -> Transaction:
    """
    Parse a CSV row into a Transaction.

    Header names and values may carry surrounding whitespace and the type
    token is case-insensitive. Amounts on dispute, resolve and chargeback
    rows are ignored.
    """
    normalized = {
        k.strip(): (v or "").strip()
        for k, v in row.items()
        if isinstance(k, str)
    }

    try:
        type_str = normalized["type"].lower()
        client_str = normalized["client"]
        tx_str = normalized["tx"]
    except KeyError as e:
        raise MalformedRecordError(f"missing column {e}") from None

    try:
        transaction_type = TransactionType(type_str)
    except ValueError:
        raise MalformedRecordError(f"unknown transaction type: {type_str!r}") from None

    client_id = _parse_id(client_str, "client", MAX_CLIENT_ID)
    transaction_id = _parse_id(tx_str, "tx", MAX_TRANSACTION_ID)

    amount = None
    if transaction_type.requires_amount:
        amount_str = normalized.get("amount", "")
        if not amount_str:
            raise MalformedRecordError(f"{transaction_type.value} tx {transaction_id} has no amount")
        amount = _parse_amount(amount_str)

    return Transaction(
        transaction_type=transaction_type,
        client_id=client_id,
        transaction_id=transaction_id,
        amount=amount,
    )


def read_transactions(
    filepath: str,
    on_malformed: Optional[Callable[[int, MalformedRecordError], None]] = None,
) -> Iterator[Transaction]:
    """
    Yield transactions from a CSV file in file order.

    The first row is the header. Malformed rows are logged and skipped.
    Failure to open the file raises OSError before anything is yielded;
    content that is not UTF-8 raises UnicodeDecodeError.
    """
    with open(filepath, "r", newline="", encoding="utf-8-sig") as f:
        reader = csv.DictReader(f, skipinitialspace=True)
        for row in reader:
            try:
                yield parse_row(row)
            except MalformedRecordError as e:
                logger.warning(f"Skipping malformed row at line {reader.line_num}: {e}")
                if on_malformed is not None:
                    on_malformed(reader.line_num, e)
