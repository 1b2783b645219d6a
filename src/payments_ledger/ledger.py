from typing import Dict, Optional

from payments_ledger.models import ClientAccount


class AccountLedger:
    """
    Client accounts for one run.
    Accounts are created on first reference and never removed.
    """

    def __init__(self):
        self._accounts: Dict[int, ClientAccount] = {}

    def __len__(self) -> int:
        return len(self._accounts)

    def __contains__(self, client_id: int) -> bool:
        return client_id in self._accounts

    def get_or_create(self, client_id: int) -> ClientAccount:
        """Get existing account or create a zeroed one."""
        account = self._accounts.get(client_id)
        if account is None:
            account = ClientAccount(client_id=client_id)
            self._accounts[client_id] = account
        return account

    def get(self, client_id: int) -> Optional[ClientAccount]:
        return self._accounts.get(client_id)

    def merge(self, other: "AccountLedger") -> None:
        """Absorb accounts from a ledger that owns a disjoint set of clients."""
        overlap = self._accounts.keys() & other._accounts.keys()
        if overlap:
            raise ValueError(f"ledgers share clients: {sorted(overlap)}")
        self._accounts.update(other._accounts)

    def accounts(self) -> Dict[int, ClientAccount]:
        """Return all accounts (for final output)."""
        return dict(self._accounts)
