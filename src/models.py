from collections import Counter
from dataclasses import dataclass, replace
from decimal import Decimal, ROUND_HALF_EVEN, localcontext
from enum import Enum
from typing import Optional

AMOUNT_PRECISION = Decimal("0.0001")
MAX_AMOUNT = Decimal("1e15")

MAX_CLIENT_ID = 2**16 - 1
MAX_TRANSACTION_ID = 2**32 - 1


def quantize_amount(value: Decimal) -> Decimal:
    """Round an amount to the four decimal places the ledger works in."""
    with localcontext() as ctx:
        # quantize fails once the result needs more digits than the context allows
        ctx.prec = max(ctx.prec, value.adjusted() + 6)
        return value.quantize(AMOUNT_PRECISION, rounding=ROUND_HALF_EVEN)


class TransactionType(Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DISPUTE = "dispute"
    RESOLVE = "resolve"
    CHARGEBACK = "chargeback"

    @property
    def requires_amount(self) -> bool:
        return self in (TransactionType.DEPOSIT, TransactionType.WITHDRAWAL)


class DisputeStatus(Enum):
    UNDISPUTED = "undisputed"
    DISPUTED = "disputed"
    RESOLVED = "resolved"
    CHARGED_BACK = "charged_back"


class ProcessingResult(Enum):
    SUCCESS = "success"
    INVALID_AMOUNT = "invalid_amount"
    DUPLICATE_TRANSACTION = "duplicate_transaction"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    ACCOUNT_LOCKED = "account_locked"
    TRANSACTION_NOT_FOUND = "transaction_not_found"
    CLIENT_MISMATCH = "client_mismatch"
    NOT_DISPUTABLE = "not_disputable"
    INVALID_DISPUTE_STATE = "invalid_dispute_state"

    @property
    def is_success(self) -> bool:
        return self is ProcessingResult.SUCCESS


@dataclass(frozen=True)
class Transaction:
    transaction_type: TransactionType
    client_id: int
    transaction_id: int
    amount: Optional[Decimal] = None

    def __repr__(self) -> str:
        return (
            f"Transaction({self.transaction_type.value}, client={self.client_id}, "
            f"tx={self.transaction_id}, amount={self.amount})"
        )


@dataclass
class StoredTransaction:
    """A processed deposit or withdrawal kept around so disputes can reference it."""

    transaction: Transaction
    status: DisputeStatus = DisputeStatus.UNDISPUTED

    @property
    def client_id(self) -> int:
        return self.transaction.client_id

    @property
    def transaction_type(self) -> TransactionType:
        return self.transaction.transaction_type

    @property
    def amount(self) -> Decimal:
        return self.transaction.amount


@dataclass
class ClientAccount:
    client_id: int
    available: Decimal = Decimal("0")
    held: Decimal = Decimal("0")
    locked: bool = False

    @property
    def total(self) -> Decimal:
        return self.available + self.held

    def credit(self, amount: Decimal) -> None:
        self.available += amount

    def debit(self, amount: Decimal) -> None:
        self.available -= amount

    def hold(self, amount: Decimal) -> None:
        self.available -= amount
        self.held += amount

    def release_hold(self, amount: Decimal) -> None:
        self.held -= amount
        self.available += amount

    def remove_held(self, amount: Decimal) -> None:
        self.held -= amount

    def copy(self) -> "ClientAccount":
        return replace(self)


class ProcessingStats:
    """Counters for tracking processing statistics."""

    def __init__(self):
        self.processed = 0
        self.malformed = 0
        self.skipped: Counter = Counter()

    def record(self, result: ProcessingResult) -> None:
        if result.is_success:
            self.processed += 1
        else:
            self.skipped[result] += 1

    def record_malformed(self) -> None:
        self.malformed += 1

    @property
    def failed(self) -> int:
        return sum(self.skipped.values())

    def summary(self) -> str:
        reasons = ", ".join(
            f"{result.value}={count}" for result, count in sorted(self.skipped.items(), key=lambda item: item[0].value)
        )
        line = f"Processed: {self.processed}, Skipped: {self.failed}, Malformed: {self.malformed}"
        if reasons:
            line += f" ({reasons})"
        return line
