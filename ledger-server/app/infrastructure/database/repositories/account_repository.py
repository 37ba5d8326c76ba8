"""SQLAlchemy implementation for the ledger account store"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.db.models import LedgerAccount, LedgerStatement
from app.modules.ledger.exceptions import (
    AMOUNT_TOO_LARGE_MESSAGE,
    AccountNotFoundError,
    ConcurrentModificationError,
    InvalidAmountError,
    LedgerUnavailableError,
)
from app.modules.ledger.models import Account, OperationType, Statement

# Signed 64-bit INTEGER columns.
MAX_CENTS = 2**63 - 1
MAX_LOAD_ATTEMPTS = 5


def to_cents(amount: Decimal) -> int:
    if abs(amount) > from_cents(MAX_CENTS):
        raise InvalidAmountError(AMOUNT_TOO_LARGE_MESSAGE)
    return int(amount.scaleb(2))


def from_cents(cents: int) -> Decimal:
    return Decimal(cents).scaleb(-2)


def _as_utc(value: datetime) -> datetime:
    # SQLite drops the offset on the way back.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class SqlAccountRepository:
    """Account store backed by two tables, one transaction per call.

    ``load`` reads the account row, then its statements, then the version
    again, and starts over if a writer committed in between. ``save`` is
    guarded by the ``version`` column and only inserts the statements that
    are not persisted yet.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], *, max_load_attempts: int = MAX_LOAD_ATTEMPTS) -> None:
        self._session_factory = session_factory
        self._max_load_attempts = max_load_attempts

    async def load(self, account_id: str) -> Account:
        for _ in range(self._max_load_attempts):
            account = await self._read(account_id)
            if account is not None:
                return account
        raise LedgerUnavailableError(f"Account {account_id} kept changing while being read, please retry.")

    async def _read(self, account_id: str) -> Account | None:
        """One read pass; ``None`` when the account changed under it."""
        async with self._session_factory() as session:
            result = await session.execute(select(LedgerAccount).where(LedgerAccount.id == account_id))
            row = result.scalars().first()
            if row is None:
                raise AccountNotFoundError(account_id)
            version = row.version
            account = Account(id=row.id, balance=from_cents(row.balance_cents), version=version)

            stmt = (
                select(LedgerStatement)
                .where(LedgerStatement.account_id == account_id)
                .order_by(LedgerStatement.sequence)
            )
            account.statements = [self._to_statement(item) for item in (await session.execute(stmt)).scalars()]

            recheck = select(LedgerAccount.version).where(LedgerAccount.id == account_id)
            if (await session.execute(recheck)).scalar_one_or_none() != version:
                return None
            return account

    async def save(self, account: Account) -> None:
        async with self._session_factory() as session, session.begin():
            stmt = (
                update(LedgerAccount)
                .where(LedgerAccount.id == account.id, LedgerAccount.version == account.version)
                .values(
                    balance_cents=to_cents(account.balance),
                    version=LedgerAccount.version + 1,
                )
            )
            result = await session.execute(stmt)
            if result.rowcount == 0:
                raise ConcurrentModificationError(account.id, account.version)

            count_stmt = select(func.count(LedgerStatement.id)).where(LedgerStatement.account_id == account.id)
            persisted = (await session.execute(count_stmt)).scalar_one()
            for sequence, statement in enumerate(account.statements[persisted:], start=persisted):
                session.add(
                    LedgerStatement(
                        account_id=account.id,
                        sequence=sequence,
                        occurred_at=statement.timestamp,
                        operation_type=statement.operation_type.value,
                        amount_cents=to_cents(statement.amount),
                        balance_after_cents=to_cents(statement.resulting_balance),
                    )
                )
        account.version += 1

    async def create_account(self, account_id: str, opening_balance: Decimal = Decimal("0.00")) -> Account:
        account = Account(id=account_id, balance=opening_balance)
        account.check_invariants()
        async with self._session_factory() as session, session.begin():
            session.add(LedgerAccount(id=account_id, balance_cents=to_cents(opening_balance), version=0))
        return account

    async def exists(self, account_id: str) -> bool:
        async with self._session_factory() as session:
            result = await session.execute(select(LedgerAccount.id).where(LedgerAccount.id == account_id))
            return result.scalar_one_or_none() is not None

    @staticmethod
    def _to_statement(row: LedgerStatement) -> Statement:
        return Statement(
            timestamp=_as_utc(row.occurred_at),
            operation_type=OperationType(row.operation_type),
            amount=from_cents(row.amount_cents),
            resulting_balance=from_cents(row.balance_after_cents),
        )
