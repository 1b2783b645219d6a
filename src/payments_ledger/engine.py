import logging
from typing import Dict, Iterable, Optional, Union

from payments_ledger.config import EngineSettings
from payments_ledger.csv_io import open_input, read_transactions
from payments_ledger.history import TransactionHistory
from payments_ledger.ledger import AccountLedger
from payments_ledger.models import ClientAccount, ProcessingResult, ProcessingStats, RecordError, Transaction
from payments_ledger.processor import TransactionProcessor

logger = logging.getLogger(__name__)


def report_rejection(transaction: Transaction, result: ProcessingResult) -> None:
    logger.warning(
        f"tx {transaction.transaction_id}, client {transaction.client_id}: "
        f"{transaction.transaction_type.value} rejected ({result.value})"
    )


def report_record_error(error: RecordError) -> None:
    logger.warning(f"line {error.line_number}: skipping malformed record: {error.message}")


class PaymentsEngine:
    """
    Sequential driver: feeds records to the processor in arrival order.
    Rejected and malformed records are logged and skipped, never fatal.
    """

    def __init__(self, settings: Optional[EngineSettings] = None):
        self._settings = settings or EngineSettings()
        self._history = TransactionHistory()
        self._ledger = AccountLedger()
        self._processor = TransactionProcessor(
            self._history, self._ledger, dispute_withdrawals=self._settings.dispute_withdrawals
        )
        self._stats = ProcessingStats()

    @property
    def stats(self) -> ProcessingStats:
        return self._stats

    def process_file(self, filepath: str) -> Dict[int, ClientAccount]:
        """Process CSV file and return final account states."""
        with open_input(filepath) as f:
            return self.process(read_transactions(f))

    def process(self, records: Iterable[Union[Transaction, RecordError]]) -> Dict[int, ClientAccount]:
        for record in records:
            if isinstance(record, RecordError):
                self._stats.record_malformed()
                report_record_error(record)
                continue

            result = self._processor.process_transaction(record)
            if result.is_success:
                self._stats.record_success()
            else:
                self._stats.record_failure()
                report_rejection(record, result)

        logger.info(
            f"Processed: {self._stats.processed}, "
            f"Failed: {self._stats.failed}, "
            f"Malformed: {self._stats.malformed}"
        )
        return self._ledger.accounts()
