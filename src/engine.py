import logging
from typing import Iterable, List

from models import Transaction, ClientAccount, ProcessingResult, ProcessingStats
from parsing import MalformedRecordError, read_transactions
from state import LedgerState
from processor import TransactionProcessor

logger = logging.getLogger(__name__)


class LedgerEngine:
    """
    Applies a stream of transactions strictly in arrival order, one at a time.
    Owns all account and dispute state for a single run.
    """

    def __init__(self, allow_redispute: bool = True, allow_withdrawal_disputes: bool = True):
        self._state = LedgerState()
        self._processor = TransactionProcessor(
            self._state,
            allow_redispute=allow_redispute,
            allow_withdrawal_disputes=allow_withdrawal_disputes,
        )
        self._stats = ProcessingStats()

    @property
    def stats(self) -> ProcessingStats:
        return self._stats

    def apply(self, transaction: Transaction) -> ProcessingResult:
        """Apply one transaction. Business-rule violations are skipped, never raised."""
        result = self._processor.process_transaction(transaction)
        self._stats.record(result)
        if not result.is_success:
            logger.debug(f"Skipped {transaction}: {result.value}")
        return result

    def snapshot(self) -> List[ClientAccount]:
        """Return copies of every known account, in creation order."""
        return [account.copy() for account in self._state.accounts()]

    def process(self, transactions: Iterable[Transaction]) -> List[ClientAccount]:
        """Apply every transaction and return the final snapshot."""
        for transaction in transactions:
            self.apply(transaction)
        return self.snapshot()

    def process_file(self, filepath: str) -> List[ClientAccount]:
        """
        Process a CSV file and return final account states.
        Raises OSError if the file cannot be opened.
        """
        logger.info(f"Processing {filepath}")
        accounts = self.process(read_transactions(filepath, on_malformed=self._on_malformed))
        logger.info(self._stats.summary())
        return accounts

    def _on_malformed(self, line_num: int, error: MalformedRecordError) -> None:
        self._stats.record_malformed()
