import threading
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Dict, Optional

from payments_ledger.amount import ZERO, add, subtract
from payments_ledger.errors import InsufficientFundsError


class TransactionType(Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DISPUTE = "dispute"
    RESOLVE = "resolve"
    CHARGEBACK = "chargeback"

    @property
    def moves_funds(self) -> bool:
        """Deposits and withdrawals carry an amount and enter the history."""
        return self in (TransactionType.DEPOSIT, TransactionType.WITHDRAWAL)


class DisputeState(Enum):
    NORMAL = "normal"
    DISPUTED = "disputed"
    CHARGED_BACK = "charged_back"


class ProcessingResult(Enum):
    SUCCESS = "success"
    DUPLICATE_TX = "duplicate_tx"
    ACCOUNT_LOCKED = "account_locked"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    UNKNOWN_TX = "unknown_tx"
    CLIENT_MISMATCH = "client_mismatch"
    ALREADY_DISPUTED = "already_disputed"
    NOT_DISPUTED = "not_disputed"
    NOT_DISPUTABLE = "not_disputable"
    INVALID_AMOUNT = "invalid_amount"
    AMOUNT_OVERFLOW = "amount_overflow"

    @property
    def is_success(self) -> bool:
        return self is ProcessingResult.SUCCESS


@dataclass
class Transaction:
    transaction_type: TransactionType
    client_id: int
    transaction_id: int
    amount: Optional[Decimal] = None

    def __repr__(self) -> str:
        return f"Transaction({self.transaction_type.value}, client={self.client_id}, tx={self.transaction_id}, amount={self.amount})"


@dataclass
class RecordError:
    """An input row the decoder could not turn into a Transaction."""

    line_number: int
    message: str
    row: Dict[str, str] = field(default_factory=dict)


@dataclass
class HistoryEntry:
    client_id: int
    transaction_type: TransactionType
    amount: Decimal
    dispute_state: DisputeState = DisputeState.NORMAL


@dataclass
class ClientAccount:
    client_id: int
    available: Decimal = ZERO
    held: Decimal = ZERO
    locked: bool = False

    @property
    def total(self) -> Decimal:
        return add(self.available, self.held)

    # add/subtract raise AmountOverflowError before any field is assigned

    def credit(self, amount: Decimal) -> None:
        available = add(self.available, amount)
        # total must stay exact too
        add(available, self.held)
        self.available = available

    def debit(self, amount: Decimal) -> None:
        if self.available < amount:
            raise InsufficientFundsError(self.client_id, amount, self.available)
        self.available = subtract(self.available, amount)

    def hold(self, amount: Decimal) -> None:
        """Move funds from available to held."""
        if self.available < amount:
            raise InsufficientFundsError(self.client_id, amount, self.available)
        available, held = subtract(self.available, amount), add(self.held, amount)
        self.available, self.held = available, held

    def release(self, amount: Decimal) -> None:
        """Move held funds back to available."""
        if self.held < amount:
            raise InsufficientFundsError(self.client_id, amount, self.held)
        held, available = subtract(self.held, amount), add(self.available, amount)
        self.held, self.available = held, available

    def remove_held(self, amount: Decimal) -> None:
        if self.held < amount:
            raise InsufficientFundsError(self.client_id, amount, self.held)
        self.held = subtract(self.held, amount)

    def lock(self) -> None:
        self.locked = True


class ProcessingStats:
    """Thread-safe counters for tracking processing statistics."""

    def __init__(self):
        self._lock = threading.Lock()
        self.processed = 0
        self.failed = 0
        self.malformed = 0

    def record_success(self):
        with self._lock:
            self.processed += 1

    def record_failure(self):
        with self._lock:
            self.failed += 1

    def record_malformed(self):
        with self._lock:
            self.malformed += 1

    def __repr__(self) -> str:
        return f"ProcessingStats(processed={self.processed}, failed={self.failed}, malformed={self.malformed})"
