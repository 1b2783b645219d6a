from typing import Optional, Tuple

from payments_ledger.errors import AmountOverflowError
from payments_ledger.history import TransactionHistory
from payments_ledger.ledger import AccountLedger
from payments_ledger.models import (
    ClientAccount,
    DisputeState,
    HistoryEntry,
    ProcessingResult,
    Transaction,
    TransactionType,
)


class TransactionProcessor:
    """
    Applies transactions to a history store and account ledger.

    Every precondition is checked before anything is mutated, so a
    non-SUCCESS result leaves both stores untouched. Reporting rejected
    records is the caller's job.
    """

    def __init__(self, history: TransactionHistory, ledger: AccountLedger, dispute_withdrawals: bool = True):
        self._history = history
        self._ledger = ledger
        self._dispute_withdrawals = dispute_withdrawals

    def process_transaction(self, transaction: Transaction, tx_id_taken: bool = False) -> ProcessingResult:
        """
        Process a single transaction.

        Deposits and withdrawals use the record's amount. Disputes, resolves
        and chargebacks use the amount stored for the referenced transaction
        and ignore whatever the record carries.

        tx_id_taken marks a deposit or withdrawal whose id is already used by
        a transaction this processor cannot see; it is rejected as a
        duplicate in the same place a locally known id would be.
        """
        match transaction.transaction_type:
            case TransactionType.DEPOSIT:
                return self._handle_deposit(transaction, tx_id_taken)
            case TransactionType.WITHDRAWAL:
                return self._handle_withdrawal(transaction, tx_id_taken)
            case TransactionType.DISPUTE:
                return self._handle_dispute(transaction)
            case TransactionType.RESOLVE:
                return self._handle_resolve(transaction)
            case TransactionType.CHARGEBACK:
                return self._handle_chargeback(transaction)
            case _:
                raise ValueError(f"unhandled transaction type {transaction.transaction_type!r}")

    def _check_funds_movement(
        self, transaction: Transaction, tx_id_taken: bool
    ) -> Tuple[Optional[ClientAccount], ProcessingResult]:
        if transaction.amount is None or transaction.amount <= 0:
            return None, ProcessingResult.INVALID_AMOUNT

        account = self._ledger.get_or_create(transaction.client_id)
        if account.locked:
            return None, ProcessingResult.ACCOUNT_LOCKED

        if tx_id_taken or transaction.transaction_id in self._history:
            return None, ProcessingResult.DUPLICATE_TX

        return account, ProcessingResult.SUCCESS

    def _handle_deposit(self, transaction: Transaction, tx_id_taken: bool) -> ProcessingResult:
        account, result = self._check_funds_movement(transaction, tx_id_taken)
        if account is None:
            return result

        try:
            account.credit(transaction.amount)
        except AmountOverflowError:
            return ProcessingResult.AMOUNT_OVERFLOW
        self._history.record(
            transaction.transaction_id, transaction.client_id, transaction.transaction_type, transaction.amount
        )
        return ProcessingResult.SUCCESS

    def _handle_withdrawal(self, transaction: Transaction, tx_id_taken: bool) -> ProcessingResult:
        account, result = self._check_funds_movement(transaction, tx_id_taken)
        if account is None:
            return result

        if account.available < transaction.amount:
            return ProcessingResult.INSUFFICIENT_FUNDS

        account.debit(transaction.amount)
        self._history.record(
            transaction.transaction_id, transaction.client_id, transaction.transaction_type, transaction.amount
        )
        return ProcessingResult.SUCCESS

    def _lookup_referenced(
        self, transaction: Transaction
    ) -> Tuple[Optional[HistoryEntry], ProcessingResult]:
        entry = self._history.get(transaction.transaction_id)
        if entry is None:
            return None, ProcessingResult.UNKNOWN_TX
        if entry.client_id != transaction.client_id:
            return None, ProcessingResult.CLIENT_MISMATCH
        return entry, ProcessingResult.SUCCESS

    def _handle_dispute(self, transaction: Transaction) -> ProcessingResult:
        entry, result = self._lookup_referenced(transaction)
        if entry is None:
            return result

        if entry.transaction_type is TransactionType.WITHDRAWAL and not self._dispute_withdrawals:
            return ProcessingResult.NOT_DISPUTABLE

        if entry.dispute_state is not DisputeState.NORMAL:
            return ProcessingResult.ALREADY_DISPUTED

        account = self._ledger.get_or_create(transaction.client_id)
        if account.available < entry.amount:
            return ProcessingResult.INSUFFICIENT_FUNDS

        account.hold(entry.amount)
        self._history.set_disputed(transaction.transaction_id)
        return ProcessingResult.SUCCESS

    def _handle_resolve(self, transaction: Transaction) -> ProcessingResult:
        entry, result = self._lookup_referenced(transaction)
        if entry is None:
            return result

        if entry.dispute_state is not DisputeState.DISPUTED:
            return ProcessingResult.NOT_DISPUTED

        account = self._ledger.get_or_create(transaction.client_id)
        account.release(entry.amount)
        self._history.clear_disputed(transaction.transaction_id)
        return ProcessingResult.SUCCESS

    def _handle_chargeback(self, transaction: Transaction) -> ProcessingResult:
        entry, result = self._lookup_referenced(transaction)
        if entry is None:
            return result

        if entry.dispute_state is not DisputeState.DISPUTED:
            return ProcessingResult.NOT_DISPUTED

        account = self._ledger.get_or_create(transaction.client_id)
        account.remove_held(entry.amount)
        account.lock()
        self._history.finalize(transaction.transaction_id)
        return ProcessingResult.SUCCESS
