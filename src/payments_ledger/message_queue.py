import threading
from queue import Queue, Empty
from typing import List, NamedTuple, Optional

from payments_ledger.models import Transaction


class RoutedTransaction(NamedTuple):
    transaction: Transaction
    # id already claimed by a client on another shard
    tx_id_taken: bool = False


class ShardedQueue:
    """
    One FIFO queue per shard. A client always maps to the same shard, so
    each client's transactions are consumed in the order they were published.
    All synchronization is internal - callers never need to lock.
    """

    DEFAULT_TIMEOUT = 0.1

    def __init__(self, num_shards: int):
        if num_shards < 1:
            raise ValueError("num_shards must be at least 1")
        self._shards: List[Queue[RoutedTransaction]] = [Queue() for _ in range(num_shards)]
        self._shutdown_event = threading.Event()

    @property
    def num_shards(self) -> int:
        return len(self._shards)

    def shard_for(self, client_id: int) -> int:
        return client_id % len(self._shards)

    def publish_message(self, message: Transaction, tx_id_taken: bool = False) -> None:
        """Add message to its client's shard. Thread-safe."""
        self._shards[self.shard_for(message.client_id)].put(RoutedTransaction(message, tx_id_taken))

    def consume_message(self, shard: int) -> Optional[RoutedTransaction]:
        """
        Get next message from a shard.
        Returns None if the shard is empty after timeout.
        """
        try:
            return self._shards[shard].get(timeout=self.DEFAULT_TIMEOUT)
        except Empty:
            return None

    def is_empty(self, shard: int) -> bool:
        return self._shards[shard].empty()

    def shutdown(self) -> None:
        """Signal no more messages will be published."""
        self._shutdown_event.set()

    def is_shutdown(self) -> bool:
        return self._shutdown_event.is_set()
