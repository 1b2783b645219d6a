import logging
import threading
from typing import Dict, Iterable, List, Optional, Union

from payments_ledger.config import EngineSettings
from payments_ledger.csv_io import open_input, read_transactions
from payments_ledger.engine import report_record_error, report_rejection
from payments_ledger.history import TransactionHistory
from payments_ledger.ledger import AccountLedger
from payments_ledger.message_queue import ShardedQueue
from payments_ledger.models import ClientAccount, ProcessingStats, RecordError, Transaction
from payments_ledger.processor import TransactionProcessor

logger = logging.getLogger(__name__)


class _Shard:
    """State owned by a single worker thread. Nothing here is shared."""

    def __init__(self, dispute_withdrawals: bool):
        self.history = TransactionHistory()
        self.ledger = AccountLedger()
        self.processor = TransactionProcessor(self.history, self.ledger, dispute_withdrawals=dispute_withdrawals)


class ShardedPaymentsEngine:
    """
    Publisher-consumer driver that partitions clients across worker threads.

    Every rule only touches one client's account and transactions, so each
    worker runs its own processor over a disjoint set of clients. Per-client
    order is preserved because a client always lands on the same shard.

    Transactions are only visible within their shard: a dispute naming
    another client's transaction is rejected as unknown_tx instead of
    client_mismatch, with the same effect on balances. The publisher
    remembers which client first used each deposit or withdrawal id and
    flags later reuse by a different client, so the owning shard rejects it
    as duplicate_tx. The id is claimed even if its first use is rejected by
    the shard, which the sequential engine would not do.
    """

    def __init__(self, settings: Optional[EngineSettings] = None, num_workers: Optional[int] = None):
        self._settings = settings or EngineSettings()
        self._num_workers = num_workers or self._settings.num_workers
        self._queue = ShardedQueue(self._num_workers)
        self._shards = [_Shard(self._settings.dispute_withdrawals) for _ in range(self._num_workers)]
        self._stats = ProcessingStats()
        self._publish_error: Optional[BaseException] = None
        self._tx_id_owners: Dict[int, int] = {}

    @property
    def stats(self) -> ProcessingStats:
        return self._stats

    def process_file(self, filepath: str) -> Dict[int, ClientAccount]:
        """Process CSV file and return final account states."""
        with open_input(filepath) as f:
            return self.process(read_transactions(f))

    def process(self, records: Iterable[Union[Transaction, RecordError]]) -> Dict[int, ClientAccount]:
        logger.info(f"Starting sharded processing with {self._num_workers} workers")

        publisher_thread = threading.Thread(target=self._publish_transactions, args=(records,))
        publisher_thread.start()

        consumer_threads: List[threading.Thread] = []
        for shard_index in range(self._num_workers):
            consumer_thread = threading.Thread(target=self._consume_transactions, args=(shard_index,))
            consumer_thread.start()
            consumer_threads.append(consumer_thread)

        publisher_thread.join()
        for consumer_thread in consumer_threads:
            consumer_thread.join()

        if self._publish_error is not None:
            raise self._publish_error

        logger.info(
            f"Processed: {self._stats.processed}, "
            f"Failed: {self._stats.failed}, "
            f"Malformed: {self._stats.malformed}"
        )

        merged = AccountLedger()
        for shard in self._shards:
            merged.merge(shard.ledger)
        return merged.accounts()

    def _publish_transactions(self, records: Iterable[Union[Transaction, RecordError]]) -> None:
        """Decode records and route each one to its client's shard."""
        try:
            for record in records:
                if isinstance(record, RecordError):
                    self._stats.record_malformed()
                    report_record_error(record)
                    continue
                self._queue.publish_message(record, tx_id_taken=self._claim_tx_id(record))
        except Exception as e:
            self._publish_error = e
        finally:
            self._queue.shutdown()

    def _claim_tx_id(self, transaction: Transaction) -> bool:
        """Return True if another client already used this deposit or withdrawal id."""
        if not transaction.transaction_type.moves_funds:
            return False
        # the processor rejects these before looking at the id
        if transaction.amount is None or transaction.amount <= 0:
            return False
        owner = self._tx_id_owners.setdefault(transaction.transaction_id, transaction.client_id)
        return owner != transaction.client_id

    def _consume_transactions(self, shard_index: int) -> None:
        """Consumer loop: drain one shard until the publisher is done."""
        processor = self._shards[shard_index].processor
        while True:
            routed = self._queue.consume_message(shard_index)
            if routed is None:
                if self._queue.is_shutdown() and self._queue.is_empty(shard_index):
                    break
                continue

            transaction = routed.transaction
            result = processor.process_transaction(transaction, tx_id_taken=routed.tx_id_taken)
            if result.is_success:
                self._stats.record_success()
            else:
                self._stats.record_failure()
                report_rejection(transaction, result)
