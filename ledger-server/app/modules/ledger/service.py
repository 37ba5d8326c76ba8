"""Ledger domain service: deposits, withdrawals, balances and statements."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime, timezone
from decimal import Decimal, Inexact, InvalidOperation, localcontext
from typing import Union

from .exceptions import (
    AMOUNT_TOO_LARGE_MESSAGE,
    AccountNotFoundError,
    ConcurrentModificationError,
    InsufficientBalanceError,
    InvalidAmountError,
    LedgerUnavailableError,
    POSITIVE_AMOUNT_MESSAGE,
    PRECISION_EXCEEDED_MESSAGE,
)
from .locks import AccountLockRegistry
from .models import MAX_SCALE, Account, OperationType, Statement, decimal_places
from .repository import AccountRepository

logger = logging.getLogger(__name__)

AmountLike = Union[Decimal, int, str]

NO_STATEMENT = "Account has no statement."
STATEMENT_TITLE = "Date                | Type       | Amount  | Balance\n"
STATEMENT_DELIMITER = "-" * 53 + "\n"
STATEMENT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

DEFAULT_OPERATION_TIMEOUT = 5.0
DEFAULT_MAX_SAVE_ATTEMPTS = 3


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_statement_row(statement: Statement) -> str:
    date = statement.timestamp.astimezone(timezone.utc).strftime(STATEMENT_DATE_FORMAT)
    return (
        f"{date:<20}| {statement.operation_type.value:<10}| "
        f"{statement.amount:<8.2f}| {statement.resulting_balance:<8.2f}\n"
    )


def render_statement(statements: list[Statement]) -> str:
    """Render history most-recent-first; equal timestamps show the later entry first."""
    if not statements:
        return NO_STATEMENT
    ordered = sorted(
        enumerate(statements),
        key=lambda item: (item[1].timestamp, item[0]),
        reverse=True,
    )
    rows = [format_statement_row(statement) for _, statement in ordered]
    return STATEMENT_TITLE + STATEMENT_DELIMITER + "".join(rows)


class LedgerService:
    """Encapsulates the ledger use cases over an injected account repository."""

    def __init__(
        self,
        repository: AccountRepository,
        *,
        locks: AccountLockRegistry | None = None,
        clock: Callable[[], datetime] = utc_now,
        operation_timeout: float = DEFAULT_OPERATION_TIMEOUT,
        max_save_attempts: int = DEFAULT_MAX_SAVE_ATTEMPTS,
    ) -> None:
        if max_save_attempts < 1:
            raise ValueError("max_save_attempts must be at least 1")
        self._repository = repository
        self._locks = locks or AccountLockRegistry()
        self._clock = clock
        self._operation_timeout = operation_timeout
        self._max_save_attempts = max_save_attempts

    @property
    def locks(self) -> AccountLockRegistry:
        return self._locks

    async def deposit(self, account_id: str, amount: AmountLike) -> None:
        value = self._validate_amount(amount, OperationType.DEPOSIT)
        await self._apply(account_id, value, OperationType.DEPOSIT)

    async def withdraw(self, account_id: str, amount: AmountLike) -> None:
        value = self._validate_amount(amount, OperationType.WITHDRAW)
        await self._apply(account_id, value, OperationType.WITHDRAW)

    async def get_balance(self, account_id: str) -> Decimal:
        account = await self._load(account_id)
        return account.balance

    async def get_statement(self, account_id: str) -> str:
        account = await self._load(account_id)
        return render_statement(account.statements)

    async def _load(self, account_id: str) -> Account:
        if not account_id or not account_id.strip():
            raise AccountNotFoundError(account_id)
        return await self._repository.load(account_id)

    async def _apply(self, account_id: str, amount: Decimal, operation: OperationType) -> None:
        try:
            await asyncio.wait_for(
                self._apply_locked(account_id, amount, operation),
                timeout=self._operation_timeout,
            )
        except asyncio.TimeoutError as exc:
            logger.error("%s on account %s timed out after %ss", operation.description, account_id, self._operation_timeout)
            raise LedgerUnavailableError(f"{operation.description} timed out, please retry.") from exc

    async def _apply_locked(self, account_id: str, amount: Decimal, operation: OperationType) -> None:
        async with self._locks.hold(account_id):
            for attempt in range(1, self._max_save_attempts + 1):
                account = await self._load(account_id)
                self._mutate(account, amount, operation)
                try:
                    await self._commit(account)
                except ConcurrentModificationError:
                    logger.warning(
                        "Concurrent update on account %s (attempt %d/%d)",
                        account_id,
                        attempt,
                        self._max_save_attempts,
                    )
                    continue
                logger.info(
                    "%s of %s applied to account %s, balance now %s",
                    operation.description,
                    amount,
                    account_id,
                    account.balance,
                )
                return

        logger.error("Giving up on %s for account %s after %d conflicts", operation.description, account_id, self._max_save_attempts)
        raise LedgerUnavailableError(f"{operation.description} could not be applied, please retry.")

    async def _commit(self, account: Account) -> None:
        """Save ``account``; a save already in flight is not abandoned on timeout."""
        commit = asyncio.ensure_future(self._repository.save(account))
        try:
            await asyncio.shield(commit)
        except asyncio.CancelledError:
            await asyncio.wait([commit])
            if commit.cancelled() or commit.exception() is not None:
                raise
            logger.warning("Save of account %s finished after the operation deadline", account.id)

    def _mutate(self, account: Account, amount: Decimal, operation: OperationType) -> None:
        if operation is OperationType.WITHDRAW and amount > account.balance:
            logger.warning("Rejected withdraw of %s on account %s: balance %s", amount, account.id, account.balance)
            raise InsufficientBalanceError()

        with localcontext() as ctx:
            ctx.traps[Inexact] = True
            try:
                if operation is OperationType.WITHDRAW:
                    new_balance = account.balance - amount
                else:
                    new_balance = account.balance + amount
            except Inexact as exc:
                logger.warning("Rejected %s of %s on account %s: balance out of range", operation.value.lower(), amount, account.id)
                raise InvalidAmountError(AMOUNT_TOO_LARGE_MESSAGE) from exc

        timestamp = self._clock()
        last = account.last_statement
        if last is not None and timestamp < last.timestamp:
            timestamp = last.timestamp

        account.balance = new_balance
        account.statements.append(
            Statement(
                timestamp=timestamp,
                operation_type=operation,
                amount=amount,
                resulting_balance=new_balance,
            )
        )
        account.check_invariants()

    @staticmethod
    def _validate_amount(amount: AmountLike, operation: OperationType) -> Decimal:
        positive_message = operation.description + POSITIVE_AMOUNT_MESSAGE
        try:
            value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
        except (InvalidOperation, ValueError) as exc:
            raise InvalidAmountError(positive_message) from exc

        if not value.is_finite() or value <= 0:
            raise InvalidAmountError(positive_message)
        if decimal_places(value) > MAX_SCALE:
            raise InvalidAmountError(PRECISION_EXCEEDED_MESSAGE)
        return value
