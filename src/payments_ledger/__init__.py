"""Single-pass payments ledger: applies client transactions and reports balances."""

from payments_ledger.config import EngineSettings
from payments_ledger.engine import PaymentsEngine
from payments_ledger.models import ClientAccount, ProcessingResult, Transaction, TransactionType
from payments_ledger.sharded import ShardedPaymentsEngine

__all__ = [
    "ClientAccount",
    "EngineSettings",
    "PaymentsEngine",
    "ProcessingResult",
    "ShardedPaymentsEngine",
    "Transaction",
    "TransactionType",
]
