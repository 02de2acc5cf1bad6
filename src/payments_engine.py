import csv
import logging
from typing import Callable, Iterable, Iterator, Optional

from errors import InputSourceError, MalformedRecord
from ledger_store import LedgerStore
from models import ProcessingStats, Record
from records import parse_csv_row
from transaction_processor import TransactionProcessor

logger = logging.getLogger(__name__)


def iter_csv_records(
    filepath: str,
    on_malformed: Optional[Callable[[int, MalformedRecord], None]] = None,
) -> Iterator[Record]:
    """
    Read a transactions CSV and yield parsed records in file order.

    Malformed rows are skipped and reported to on_malformed with their line number.
    An unreadable or corrupt file raises InputSourceError.
    """
    try:
        with open(filepath, "r", newline="") as f:
            reader = csv.DictReader(f, skipinitialspace=True)
            for row in reader:
                try:
                    record = parse_csv_row(row)
                except MalformedRecord as e:
                    if on_malformed is not None:
                        on_malformed(reader.line_num, e)
                    continue
                yield record
    except (OSError, UnicodeDecodeError, csv.Error) as e:
        raise InputSourceError(f"Cannot read transactions from {filepath}: {e}") from e


class PaymentsEngine:
    """
    Drives one run: folds a stream of records into a ledger, strictly in arrival order.
    """

    def __init__(self, ledger: Optional[LedgerStore] = None):
        self._ledger = ledger if ledger is not None else LedgerStore()
        self._stats = ProcessingStats()
        self._processor = TransactionProcessor(self._ledger, self._stats)

    @property
    def ledger(self) -> LedgerStore:
        return self._ledger

    @property
    def stats(self) -> ProcessingStats:
        return self._stats

    def process_file(self, filepath: str) -> LedgerStore:
        """Process CSV file and return the ledger holding final account states."""
        logger.info(f"Processing transactions from {filepath}")
        return self.process_records(iter_csv_records(filepath, self._record_malformed))

    def process_records(self, records: Iterable[Record]) -> LedgerStore:
        for record in records:
            lock = self._ledger.get_client_lock(record.client_id)
            with lock:
                self._processor.process_record(record)

        logger.info(f"Processing complete. {self._stats.summary()}")
        return self._ledger

    def _record_malformed(self, line_num: int, error: MalformedRecord) -> None:
        logger.warning(f"Skipping malformed row at line {line_num}: {error}")
        self._stats.record_malformed()
