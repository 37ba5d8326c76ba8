"""In-memory implementation of the ledger account store"""

from __future__ import annotations

from dataclasses import replace

from app.modules.ledger.exceptions import AccountNotFoundError, ConcurrentModificationError
from app.modules.ledger.models import Account


def _snapshot(account: Account) -> Account:
    return replace(account, statements=list(account.statements))


class InMemoryAccountRepository:
    """Keeps one snapshot per account and swaps it whole on save."""

    def __init__(self, accounts: list[Account] | None = None) -> None:
        self._accounts: dict[str, Account] = {}
        for account in accounts or []:
            self.add(account)

    def add(self, account: Account) -> None:
        account.check_invariants()
        self._accounts[account.id] = _snapshot(account)

    async def load(self, account_id: str) -> Account:
        stored = self._accounts.get(account_id)
        if stored is None:
            raise AccountNotFoundError(account_id)
        return _snapshot(stored)

    async def save(self, account: Account) -> None:
        stored = self._accounts.get(account.id)
        if stored is None:
            raise AccountNotFoundError(account.id)
        if stored.version != account.version:
            raise ConcurrentModificationError(account.id, account.version)
        account.version += 1
        self._accounts[account.id] = _snapshot(account)
