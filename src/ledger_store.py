import threading
from typing import Dict, Iterator, Optional, Tuple

from errors import DuplicateTransactionId, UnknownReference
from models import AccountSnapshot, ClientAccount, DisputeStatus, Transaction


class LedgerStore:
    """
    Authoritative state for one run: client accounts and the deposits/withdrawals
    that later disputes, resolves and chargebacks can reference.

    Records for one client are serialized on that client's lock. A mutation only
    applies to a transaction owned by the same client, so the client lock also
    covers that transaction's dispute status.
    """

    def __init__(self):
        self._accounts: Dict[int, ClientAccount] = {}
        self._transactions: Dict[int, Transaction] = {}
        self._dispute_status: Dict[int, DisputeStatus] = {}

        # Guards creation of new entries only; record processing runs under client locks.
        self._registry_lock = threading.Lock()
        self._client_locks: Dict[int, threading.Lock] = {}

    def get_client_lock(self, client_id: int) -> threading.Lock:
        """
        Get or create a lock for a specific client.
        Callers hold it for the full read-modify-write cycle of one record.
        """
        with self._registry_lock:
            if client_id not in self._client_locks:
                self._client_locks[client_id] = threading.Lock()
            return self._client_locks[client_id]

    def get_or_create_account(self, client_id: int) -> ClientAccount:
        """Get existing account or create an empty, unlocked one."""
        with self._registry_lock:
            if client_id not in self._accounts:
                self._accounts[client_id] = ClientAccount(client_id=client_id)
            return self._accounts[client_id]

    def record_transaction(self, transaction: Transaction) -> None:
        """Retain a deposit or withdrawal with a clean dispute status."""
        with self._registry_lock:
            if transaction.transaction_id in self._transactions:
                raise DuplicateTransactionId(
                    f"tx {transaction.transaction_id} already recorded",
                    transaction.client_id,
                    transaction.transaction_id,
                )
            self._transactions[transaction.transaction_id] = transaction
            self._dispute_status[transaction.transaction_id] = DisputeStatus.CLEAN

    def has_transaction(self, transaction_id: int) -> bool:
        return transaction_id in self._transactions

    def lookup_transaction(self, transaction_id: int) -> Optional[Tuple[Transaction, DisputeStatus]]:
        transaction = self._transactions.get(transaction_id)
        if transaction is None:
            return None
        return transaction, self._dispute_status[transaction_id]

    def set_dispute_status(self, transaction_id: int, status: DisputeStatus) -> None:
        if transaction_id not in self._transactions:
            raise UnknownReference(f"tx {transaction_id} was never recorded", transaction_id=transaction_id)
        self._dispute_status[transaction_id] = status

    def accounts(self) -> Dict[int, ClientAccount]:
        """Return all accounts (for final output)."""
        return dict(self._accounts)

    def snapshot(self) -> Iterator[AccountSnapshot]:
        """Lazily yield one snapshot per known client, in first-touch order."""
        for account in list(self._accounts.values()):
            yield account.snapshot()

    @property
    def transaction_count(self) -> int:
        return len(self._transactions)

    def __len__(self) -> int:
        return len(self._accounts)
