from decimal import Decimal
from typing import Dict, Optional

from payments_ledger.errors import DuplicateTransactionError, InvalidTransitionError, UnknownTransactionError
from payments_ledger.models import DisputeState, HistoryEntry, TransactionType


class TransactionHistory:
    """
    Append-only record of accepted deposits and withdrawals, keyed by tx id.
    Entries are never removed; only their dispute state changes.
    """

    def __init__(self):
        self._entries: Dict[int, HistoryEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, transaction_id: int) -> bool:
        return transaction_id in self._entries

    def record(
        self,
        transaction_id: int,
        client_id: int,
        transaction_type: TransactionType,
        amount: Decimal,
    ) -> HistoryEntry:
        """Store a new entry in NORMAL state."""
        if transaction_id in self._entries:
            raise DuplicateTransactionError(transaction_id)
        entry = HistoryEntry(client_id=client_id, transaction_type=transaction_type, amount=amount)
        self._entries[transaction_id] = entry
        return entry

    def get(self, transaction_id: int) -> Optional[HistoryEntry]:
        return self._entries.get(transaction_id)

    def set_disputed(self, transaction_id: int) -> None:
        self._transition(transaction_id, DisputeState.NORMAL, DisputeState.DISPUTED)

    def clear_disputed(self, transaction_id: int) -> None:
        self._transition(transaction_id, DisputeState.DISPUTED, DisputeState.NORMAL)

    def finalize(self, transaction_id: int) -> None:
        """Charge back a disputed entry. No transition leaves CHARGED_BACK."""
        self._transition(transaction_id, DisputeState.DISPUTED, DisputeState.CHARGED_BACK)

    def _transition(self, transaction_id: int, expected: DisputeState, target: DisputeState) -> None:
        entry = self._entries.get(transaction_id)
        if entry is None:
            raise UnknownTransactionError(transaction_id)
        if entry.dispute_state is not expected:
            raise InvalidTransitionError(transaction_id, entry.dispute_state, target)
        entry.dispute_state = target
