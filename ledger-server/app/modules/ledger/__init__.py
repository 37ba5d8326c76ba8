"""Ledger domain exports"""

from .exceptions import (
    AccountNotFoundError,
    ConcurrentModificationError,
    InsufficientBalanceError,
    InvalidAmountError,
    LedgerError,
    LedgerErrorKind,
    LedgerInvariantError,
    LedgerUnavailableError,
)
from .locks import AccountLockRegistry
from .models import Account, OperationType, Statement
from .repository import AccountRepository
from .service import NO_STATEMENT, LedgerService, render_statement

__all__ = [
    "Account",
    "AccountLockRegistry",
    "AccountNotFoundError",
    "AccountRepository",
    "ConcurrentModificationError",
    "InsufficientBalanceError",
    "InvalidAmountError",
    "LedgerError",
    "LedgerErrorKind",
    "LedgerInvariantError",
    "LedgerService",
    "LedgerUnavailableError",
    "NO_STATEMENT",
    "OperationType",
    "Statement",
    "render_statement",
]
