import logging
from typing import Optional, Tuple

from models import (
    Transaction,
    TransactionType,
    ClientAccount,
    DisputeStatus,
    ProcessingResult,
    StoredTransaction,
)
from state import LedgerState

logger = logging.getLogger(__name__)


class TransactionProcessor:
    """
    Applies transactions against ledger state.
    Returns ProcessingResult to say whether the record took effect, and if not, why.
    A skipped record never changes any account.
    """

    def __init__(self, state: LedgerState, allow_redispute: bool = True, allow_withdrawal_disputes: bool = True):
        self._state = state
        self._allow_redispute = allow_redispute
        self._allow_withdrawal_disputes = allow_withdrawal_disputes

    def process_transaction(self, transaction: Transaction) -> ProcessingResult:
        """
        Process a single transaction.

        The client's account is created on first reference, even when the
        record is then skipped.
        """
        account = self._state.get_or_create_account(transaction.client_id)

        match transaction.transaction_type:
            case TransactionType.DEPOSIT:
                return self._handle_deposit(account, transaction)
            case TransactionType.WITHDRAWAL:
                return self._handle_withdrawal(account, transaction)
            case TransactionType.DISPUTE:
                return self._handle_dispute(account, transaction)
            case TransactionType.RESOLVE:
                return self._handle_resolve(account, transaction)
            case TransactionType.CHARGEBACK:
                return self._handle_chargeback(account, transaction)

    def _validate_new_transaction(self, transaction: Transaction) -> Optional[ProcessingResult]:
        if transaction.amount is None or transaction.amount < 0:
            logger.warning(f"{transaction.transaction_type.value.capitalize()} tx {transaction.transaction_id}: invalid amount {transaction.amount}")
            return ProcessingResult.INVALID_AMOUNT

        if self._state.has_transaction(transaction.transaction_id):
            logger.warning(f"{transaction.transaction_type.value.capitalize()} tx {transaction.transaction_id}: id already used, skipping")
            return ProcessingResult.DUPLICATE_TRANSACTION

        return None

    def _handle_deposit(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        rejected = self._validate_new_transaction(transaction)
        if rejected is not None:
            return rejected

        account.credit(transaction.amount)
        self._state.store_transaction(transaction)
        return ProcessingResult.SUCCESS

    def _handle_withdrawal(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        rejected = self._validate_new_transaction(transaction)
        if rejected is not None:
            return rejected

        if account.locked:
            logger.info(f"Withdrawal tx {transaction.transaction_id}: account {account.client_id} is locked")
            return ProcessingResult.ACCOUNT_LOCKED

        if account.available < transaction.amount:
            logger.info(f"Withdrawal tx {transaction.transaction_id}: insufficient funds (available {account.available}, requested {transaction.amount})")
            return ProcessingResult.INSUFFICIENT_FUNDS

        account.debit(transaction.amount)
        self._state.store_transaction(transaction)
        return ProcessingResult.SUCCESS

    def _find_referenced(self, transaction: Transaction) -> Tuple[Optional[StoredTransaction], ProcessingResult]:
        """
        Look up the deposit or withdrawal a dispute, resolve or chargeback points at.

        A disputed withdrawal moves its amount with the same arithmetic as a
        deposit: held on dispute, released on resolve, removed on chargeback.
        """
        action = transaction.transaction_type.value.capitalize()
        original = self._state.get_transaction(transaction.transaction_id)

        if original is None:
            logger.info(f"{action} for tx {transaction.transaction_id}: transaction not found")
            return None, ProcessingResult.TRANSACTION_NOT_FOUND

        if original.client_id != transaction.client_id:
            logger.warning(f"{action} for tx {transaction.transaction_id}: client mismatch (expected {original.client_id}, got {transaction.client_id})")
            return None, ProcessingResult.CLIENT_MISMATCH

        if original.transaction_type == TransactionType.WITHDRAWAL and not self._allow_withdrawal_disputes:
            logger.info(f"{action} for tx {transaction.transaction_id}: withdrawal disputes are disabled")
            return None, ProcessingResult.NOT_DISPUTABLE

        return original, ProcessingResult.SUCCESS

    def _handle_dispute(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        original, result = self._find_referenced(transaction)
        if original is None:
            return result

        disputable = {DisputeStatus.UNDISPUTED}
        if self._allow_redispute:
            disputable.add(DisputeStatus.RESOLVED)

        if original.status not in disputable:
            logger.info(f"Dispute for tx {transaction.transaction_id}: cannot dispute a {original.status.value} transaction")
            return ProcessingResult.INVALID_DISPUTE_STATE

        account.hold(original.amount)
        original.status = DisputeStatus.DISPUTED
        return ProcessingResult.SUCCESS

    def _handle_resolve(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        original, result = self._find_referenced(transaction)
        if original is None:
            return result

        if original.status is not DisputeStatus.DISPUTED:
            logger.info(f"Resolve for tx {transaction.transaction_id}: transaction is {original.status.value}, not disputed")
            return ProcessingResult.INVALID_DISPUTE_STATE

        account.release_hold(original.amount)
        original.status = DisputeStatus.RESOLVED
        return ProcessingResult.SUCCESS

    def _handle_chargeback(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        original, result = self._find_referenced(transaction)
        if original is None:
            return result

        if original.status is not DisputeStatus.DISPUTED:
            logger.info(f"Chargeback for tx {transaction.transaction_id}: transaction is {original.status.value}, not disputed")
            return ProcessingResult.INVALID_DISPUTE_STATE

        account.remove_held(original.amount)
        account.locked = True
        original.status = DisputeStatus.CHARGED_BACK
        return ProcessingResult.SUCCESS
