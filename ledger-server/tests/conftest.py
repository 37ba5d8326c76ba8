import asyncio
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from app.infrastructure.memory import InMemoryAccountRepository
from app.modules.ledger import Account, LedgerService

START = datetime(2026, 10, 19, 10, 0, tzinfo=timezone.utc)


class StepClock:
    """Deterministic clock advancing by ``step`` on every call."""

    def __init__(self, start: datetime = START, step: timedelta = timedelta(minutes=5)):
        self.current = start
        self.step = step

    def __call__(self) -> datetime:
        now = self.current
        self.current = now + self.step
        return now


class YieldingRepository:
    """Wraps a repository and yields to the event loop around every call."""

    def __init__(self, inner, delay: float = 0):
        self.inner = inner
        self.delay = delay
        self.loads = 0
        self.saves = 0

    async def load(self, account_id):
        self.loads += 1
        await asyncio.sleep(self.delay)
        return await self.inner.load(account_id)

    async def save(self, account):
        self.saves += 1
        await asyncio.sleep(self.delay)
        await self.inner.save(account)


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def repository() -> InMemoryAccountRepository:
    return InMemoryAccountRepository([
        Account(id="A1", balance=Decimal("100.00")),
        Account(id="B1", balance=Decimal("0.00")),
    ])


@pytest.fixture
def clock() -> StepClock:
    return StepClock()


@pytest.fixture
def service(repository, clock) -> LedgerService:
    return LedgerService(repository, clock=clock)
