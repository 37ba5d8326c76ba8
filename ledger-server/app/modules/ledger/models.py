"""Domain models for the account ledger."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum

from .exceptions import LedgerInvariantError

MAX_SCALE = 2


class OperationType(str, Enum):
    DEPOSIT = "DEPOSIT"
    WITHDRAW = "WITHDRAW"

    @property
    def description(self) -> str:
        return self.value.capitalize()


def decimal_places(amount: Decimal) -> int:
    """Number of fractional digits as written (``Decimal("1.50")`` has two)."""
    exponent = amount.as_tuple().exponent
    if not isinstance(exponent, int):
        return 0
    return max(-exponent, 0)


@dataclass(frozen=True, slots=True)
class Statement:
    timestamp: datetime
    operation_type: OperationType
    amount: Decimal
    resulting_balance: Decimal

    def previous_balance(self) -> Decimal:
        if self.operation_type is OperationType.DEPOSIT:
            return self.resulting_balance - self.amount
        return self.resulting_balance + self.amount


@dataclass(slots=True)
class Account:
    id: str
    balance: Decimal
    statements: list[Statement] = field(default_factory=list)
    version: int = 0

    def check_invariants(self) -> None:
        """Raise ``LedgerInvariantError`` if balance or history are inconsistent.

        The opening balance before the first statement is unknown, so the
        running-sum check starts at the second statement.
        """
        if self.balance < 0:
            raise LedgerInvariantError(f"account {self.id}: negative balance {self.balance}")
        if decimal_places(self.balance) > MAX_SCALE:
            raise LedgerInvariantError(f"account {self.id}: balance scale exceeds {MAX_SCALE}")

        previous: Statement | None = None
        for index, statement in enumerate(self.statements):
            if statement.amount <= 0 or decimal_places(statement.amount) > MAX_SCALE:
                raise LedgerInvariantError(f"account {self.id}: statement {index} has invalid amount")
            if statement.resulting_balance < 0:
                raise LedgerInvariantError(f"account {self.id}: statement {index} has negative balance")
            if previous is not None:
                if statement.timestamp < previous.timestamp:
                    raise LedgerInvariantError(f"account {self.id}: statement {index} is out of order")
                if statement.previous_balance() != previous.resulting_balance:
                    raise LedgerInvariantError(f"account {self.id}: statement {index} breaks the running balance")
            previous = statement

        if previous is not None and previous.resulting_balance != self.balance:
            raise LedgerInvariantError(f"account {self.id}: balance does not match last statement")

    @property
    def last_statement(self) -> Statement | None:
        return self.statements[-1] if self.statements else None
