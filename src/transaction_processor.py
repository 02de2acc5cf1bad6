import logging
from typing import Optional, Tuple

from errors import (
    AccountLocked,
    ClientMismatch,
    InsufficientFunds,
    InvalidStateTransition,
    LedgerError,
    UnknownReference,
)
from ledger_store import LedgerStore
from models import (
    ClientAccount,
    DisputeStatus,
    Mutation,
    ProcessingResult,
    ProcessingStats,
    Record,
    Transaction,
    TransactionType,
)

logger = logging.getLogger(__name__)


class TransactionProcessor:
    """
    Applies records to the ledger, one at a time, in stream order.
    Caller is responsible for holding the record's client lock.
    """

    def __init__(self, ledger: LedgerStore, stats: Optional[ProcessingStats] = None):
        self._ledger = ledger
        self._stats = stats if stats is not None else ProcessingStats()

    @property
    def stats(self) -> ProcessingStats:
        return self._stats

    def process_record(self, record: Record) -> ProcessingResult:
        """
        Apply a record, absorbing per-record anomalies.

        Returns:
            SUCCESS: the ledger changed
            IGNORED: the record was dropped with no state change (logged and counted)
        """
        try:
            self.apply(record)
        except InsufficientFunds as e:
            logger.info(f"Ignoring {record}: {e}")
            self._stats.record_ignored(type(e).__name__)
            return ProcessingResult.IGNORED
        except LedgerError as e:
            logger.warning(f"Ignoring {record}: {type(e).__name__}: {e}")
            self._stats.record_ignored(type(e).__name__)
            return ProcessingResult.IGNORED

        self._stats.record_success()
        return ProcessingResult.SUCCESS

    def apply(self, record: Record) -> None:
        """
        Apply a record or raise the LedgerError explaining why it was rejected.
        All checks run before any balance changes, so a rejected record leaves no trace.
        """
        account = self._ledger.get_or_create_account(record.client_id)

        if account.locked:
            raise AccountLocked(
                f"account {account.client_id} is locked",
                record.client_id,
                record.transaction_id,
            )

        match record.transaction_type:
            case TransactionType.DEPOSIT:
                self._handle_deposit(account, record)
            case TransactionType.WITHDRAWAL:
                self._handle_withdrawal(account, record)
            case TransactionType.DISPUTE:
                self._handle_dispute(account, record)
            case TransactionType.RESOLVE:
                self._handle_resolve(account, record)
            case TransactionType.CHARGEBACK:
                self._handle_chargeback(account, record)

    def _handle_deposit(self, account: ClientAccount, transaction: Transaction) -> None:
        self._ledger.record_transaction(transaction)
        account.credit(transaction.amount)

    def _handle_withdrawal(self, account: ClientAccount, transaction: Transaction) -> None:
        if account.available < transaction.amount:
            raise InsufficientFunds(
                f"withdrawal of {transaction.amount} exceeds available {account.available}",
                transaction.client_id,
                transaction.transaction_id,
            )
        self._ledger.record_transaction(transaction)
        account.debit(transaction.amount)

    def _handle_dispute(self, account: ClientAccount, mutation: Mutation) -> None:
        original = self._referenced(mutation, DisputeStatus.CLEAN)
        account.hold(original.amount)
        self._ledger.set_dispute_status(mutation.transaction_id, DisputeStatus.DISPUTED)

    def _handle_resolve(self, account: ClientAccount, mutation: Mutation) -> None:
        original = self._referenced(mutation, DisputeStatus.DISPUTED)
        account.release_hold(original.amount)
        self._ledger.set_dispute_status(mutation.transaction_id, DisputeStatus.CLEAN)

    def _handle_chargeback(self, account: ClientAccount, mutation: Mutation) -> None:
        original = self._referenced(mutation, DisputeStatus.DISPUTED)
        account.remove_held(original.amount)
        account.freeze()
        self._ledger.set_dispute_status(mutation.transaction_id, DisputeStatus.CHARGED_BACK)

    def _referenced(self, mutation: Mutation, required: DisputeStatus) -> Transaction:
        """Look up the transaction a mutation points at and check it may move to the next status."""
        entry: Optional[Tuple[Transaction, DisputeStatus]] = self._ledger.lookup_transaction(mutation.transaction_id)

        if entry is None:
            raise UnknownReference(
                f"tx {mutation.transaction_id} not found",
                mutation.client_id,
                mutation.transaction_id,
            )

        original, status = entry
        if original.client_id != mutation.client_id:
            raise ClientMismatch(
                f"tx {mutation.transaction_id} belongs to client {original.client_id}",
                mutation.client_id,
                mutation.transaction_id,
            )

        if status is not required:
            raise InvalidStateTransition(
                f"cannot {mutation.transaction_type.value} tx {mutation.transaction_id} while {status.value}",
                mutation.client_id,
                mutation.transaction_id,
            )

        return original
