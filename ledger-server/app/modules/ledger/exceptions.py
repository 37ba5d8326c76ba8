"""Ledger domain specific exceptions."""

from __future__ import annotations

from enum import Enum

PRECISION_EXCEEDED_MESSAGE = "Amount must not have more than two decimal places."
INSUFFICIENT_BALANCE_MESSAGE = "Insufficient balance."
INVALID_ACCOUNT_MESSAGE = "Account does not exist."
POSITIVE_AMOUNT_MESSAGE = " amount must be positive."
AMOUNT_TOO_LARGE_MESSAGE = "Amount is too large."


class LedgerErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    INVALID_AMOUNT = "invalid_amount"
    INSUFFICIENT_BALANCE = "insufficient_balance"
    CONFLICT = "conflict"
    UNAVAILABLE = "unavailable"
    INVARIANT = "invariant"


class LedgerError(Exception):
    """Base class for ledger domain errors."""

    kind: LedgerErrorKind
    retriable: bool = False

    @property
    def message(self) -> str:
        return str(self.args[0]) if self.args else ""


class AccountNotFoundError(LedgerError):
    """Raised when the requested account has no backing record."""

    kind = LedgerErrorKind.NOT_FOUND

    def __init__(self, account_id: str) -> None:
        super().__init__(INVALID_ACCOUNT_MESSAGE)
        self.account_id = account_id


class InvalidAmountError(LedgerError):
    """Raised when an amount is not positive or is too precise."""

    kind = LedgerErrorKind.INVALID_AMOUNT


class InsufficientBalanceError(LedgerError):
    """Raised when a withdrawal would drive the balance negative."""

    kind = LedgerErrorKind.INSUFFICIENT_BALANCE

    def __init__(self) -> None:
        super().__init__(INSUFFICIENT_BALANCE_MESSAGE)


class ConcurrentModificationError(LedgerError):
    """Raised by a store when the saved account is based on a stale version."""

    kind = LedgerErrorKind.CONFLICT
    retriable = True

    def __init__(self, account_id: str, expected_version: int) -> None:
        super().__init__(f"Account {account_id} changed since version {expected_version}.")
        self.account_id = account_id
        self.expected_version = expected_version


class LedgerUnavailableError(LedgerError):
    """Raised when an operation could not complete in time or kept conflicting."""

    kind = LedgerErrorKind.UNAVAILABLE
    retriable = True


class LedgerInvariantError(LedgerError):
    kind = LedgerErrorKind.INVARIANT
