from decimal import Decimal

import pytest

from payments_ledger.message_queue import RoutedTransaction, ShardedQueue
from payments_ledger.models import Transaction, TransactionType


def make_transaction(client_id: int, transaction_id: int) -> Transaction:
    return Transaction(
        transaction_type=TransactionType.DEPOSIT,
        client_id=client_id,
        transaction_id=transaction_id,
        amount=Decimal("100"),
    )


class TestShardedQueue:
    def test_publish_consume(self):
        queue = ShardedQueue(num_shards=2)
        transaction = make_transaction(3, 1)
        queue.publish_message(transaction)
        assert queue.consume_message(1) == RoutedTransaction(transaction, tx_id_taken=False)

    def test_tx_id_taken_flag_travels_with_transaction(self):
        queue = ShardedQueue(num_shards=2)
        transaction = make_transaction(2, 9)
        queue.publish_message(transaction, tx_id_taken=True)
        routed = queue.consume_message(0)
        assert routed.transaction == transaction
        assert routed.tx_id_taken is True

    def test_consume_empty_returns_none(self):
        queue = ShardedQueue(num_shards=2)
        assert queue.consume_message(0) is None

    def test_client_always_maps_to_same_shard(self):
        queue = ShardedQueue(num_shards=4)
        assert queue.shard_for(6) == queue.shard_for(6) == 2
        assert queue.num_shards == 4

    def test_per_client_order_preserved(self):
        queue = ShardedQueue(num_shards=3)
        for transaction_id in range(1, 6):
            queue.publish_message(make_transaction(4, transaction_id))
            queue.publish_message(make_transaction(5, transaction_id + 100))

        shard = queue.shard_for(4)
        consumed = []
        while not queue.is_empty(shard):
            consumed.append(queue.consume_message(shard).transaction.transaction_id)
        assert consumed == [1, 2, 3, 4, 5]

    def test_is_empty(self):
        queue = ShardedQueue(num_shards=1)
        assert queue.is_empty(0)
        queue.publish_message(make_transaction(1, 1))
        assert not queue.is_empty(0)
        queue.consume_message(0)
        assert queue.is_empty(0)

    def test_shutdown(self):
        queue = ShardedQueue(num_shards=1)
        assert not queue.is_shutdown()
        queue.shutdown()
        assert queue.is_shutdown()

    def test_zero_shards_rejected(self):
        with pytest.raises(ValueError):
            ShardedQueue(num_shards=0)
