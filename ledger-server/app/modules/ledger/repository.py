"""Repository protocol for ledger accounts."""

from __future__ import annotations

from typing import Protocol

from .models import Account


class AccountRepository(Protocol):
    """Durable storage the ledger service loads from and saves to.

    ``load`` raises ``AccountNotFoundError`` for unknown ids. ``save`` persists
    the whole account atomically and raises ``ConcurrentModificationError`` when
    the stored version is no longer ``account.version``.
    """

    async def load(self, account_id: str) -> Account:
        ...

    async def save(self, account: Account) -> None:
        ...
