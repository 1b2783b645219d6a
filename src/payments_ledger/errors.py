class LedgerError(Exception):
    """Base class for ledger errors."""


class AmountParseError(LedgerError, ValueError):
    """Amount text is not a finite decimal with at most four fractional digits."""


class AmountOverflowError(LedgerError):
    """A balance update would need more digits than the ledger keeps exactly."""


class DuplicateTransactionError(LedgerError):
    def __init__(self, transaction_id: int):
        super().__init__(f"transaction {transaction_id} already recorded")
        self.transaction_id = transaction_id


class UnknownTransactionError(LedgerError, KeyError):
    def __init__(self, transaction_id: int):
        super().__init__(f"transaction {transaction_id} not found")
        self.transaction_id = transaction_id

    def __str__(self) -> str:
        return self.args[0]


class InvalidTransitionError(LedgerError):
    def __init__(self, transaction_id: int, current_state, target_state):
        super().__init__(
            f"transaction {transaction_id}: cannot move from {current_state.value} to {target_state.value}"
        )
        self.transaction_id = transaction_id
        self.current_state = current_state
        self.target_state = target_state


class InsufficientFundsError(LedgerError):
    def __init__(self, client_id: int, requested, balance):
        super().__init__(f"client {client_id}: requested {requested}, only {balance} available")
        self.client_id = client_id
        self.requested = requested
        self.balance = balance


class InputFormatError(LedgerError):
    """Input cannot be decoded at all (missing header columns, empty file)."""
