from typing import Optional


class LedgerError(Exception):
    """
    Base class for per-record anomalies.
    A LedgerError never aborts a run: the record is dropped and processing continues.
    """

    def __init__(self, message: str, client_id: Optional[int] = None, transaction_id: Optional[int] = None):
        super().__init__(message)
        self.client_id = client_id
        self.transaction_id = transaction_id


class MalformedRecord(LedgerError):
    """Row cannot be parsed into a valid Transaction or Mutation."""


class DuplicateTransactionId(LedgerError):
    """Deposit or withdrawal reuses a transaction id already in the ledger."""


class UnknownReference(LedgerError):
    """Mutation refers to a transaction the ledger has never seen."""


class ClientMismatch(LedgerError):
    """Mutation refers to a transaction owned by a different client."""


class InvalidStateTransition(LedgerError):
    """Referenced transaction is not in the dispute status the mutation requires."""


class AccountLocked(LedgerError):
    """Balance-changing record against an account frozen by a chargeback."""


class InsufficientFunds(LedgerError):
    """Withdrawal larger than the available balance."""


class InputSourceError(Exception):
    """Record source is unreadable or truncated. Fatal for the run."""
