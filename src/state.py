from typing import Dict, List, Optional

from models import Transaction, ClientAccount, StoredTransaction


class LedgerState:
    """
    Mutable ledger state owned by a single engine.
    Stores client accounts in creation order and deposit/withdrawal history for dispute lookups.
    """

    def __init__(self):
        self._accounts: Dict[int, ClientAccount] = {}
        self._transactions: Dict[int, StoredTransaction] = {}

    def get_or_create_account(self, client_id: int) -> ClientAccount:
        """Get existing account or create new one."""
        account = self._accounts.get(client_id)
        if account is None:
            account = ClientAccount(client_id=client_id)
            self._accounts[client_id] = account
        return account

    def get_account(self, client_id: int) -> Optional[ClientAccount]:
        return self._accounts.get(client_id)

    def accounts(self) -> List[ClientAccount]:
        """Return all accounts in the order they were created."""
        return list(self._accounts.values())

    def store_transaction(self, transaction: Transaction) -> StoredTransaction:
        """Store a deposit or withdrawal for future dispute lookups."""
        stored = StoredTransaction(transaction)
        self._transactions[transaction.transaction_id] = stored
        return stored

    def has_transaction(self, transaction_id: int) -> bool:
        return transaction_id in self._transactions

    def get_transaction(self, transaction_id: int) -> Optional[StoredTransaction]:
        """Retrieve stored transaction by ID."""
        return self._transactions.get(transaction_id)
