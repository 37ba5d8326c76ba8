import asyncio
from decimal import Decimal

import pytest

from app.infrastructure.memory import InMemoryAccountRepository
from app.modules.ledger import (
    Account,
    AccountLockRegistry,
    ConcurrentModificationError,
    InsufficientBalanceError,
    LedgerErrorKind,
    LedgerService,
    LedgerUnavailableError,
)

from conftest import YieldingRepository, run


async def _gather_withdrawals(service, account_id, amount, count):
    return await asyncio.gather(
        *(service.withdraw(account_id, amount) for _ in range(count)),
        return_exceptions=True,
    )


@pytest.mark.parametrize("balance, amount, attempts", [("100.00", "10", 15), ("100.00", "30", 10), ("5.00", "10", 4)])
def test_concurrent_withdrawals_never_overdraw(balance, amount, attempts):
    inner = InMemoryAccountRepository([Account(id="A1", balance=Decimal(balance))])
    service = LedgerService(YieldingRepository(inner))

    results = run(_gather_withdrawals(service, "A1", Decimal(amount), attempts))

    succeeded = [r for r in results if r is None]
    failed = [r for r in results if r is not None]
    expected_winners = int(Decimal(balance) // Decimal(amount))
    assert len(succeeded) == expected_winners
    assert all(isinstance(r, InsufficientBalanceError) for r in failed)

    account = run(inner.load("A1"))
    assert account.balance == Decimal(balance) - Decimal(amount) * len(succeeded)
    assert account.balance >= 0
    assert len(account.statements) == len(succeeded)
    account.check_invariants()


def test_concurrent_deposits_are_all_applied():
    inner = InMemoryAccountRepository([Account(id="A1", balance=Decimal("0.00"))])
    service = LedgerService(YieldingRepository(inner))

    async def scenario():
        await asyncio.gather(*(service.deposit("A1", Decimal("2.50")) for _ in range(20)))

    run(scenario())

    account = run(inner.load("A1"))
    assert account.balance == Decimal("50.00")
    assert len(account.statements) == 20
    account.check_invariants()


def test_operations_on_other_accounts_are_not_blocked():
    inner = InMemoryAccountRepository([
        Account(id="A1", balance=Decimal("10.00")),
        Account(id="B1", balance=Decimal("10.00")),
    ])

    class GatedRepository(YieldingRepository):
        gate: asyncio.Event

        async def load(self, account_id):
            if account_id == "A1":
                await self.gate.wait()
            return await super().load(account_id)

    repository = GatedRepository(inner)
    service = LedgerService(repository)

    async def wait_until_locked(account_id):
        while not service.locks.is_locked(account_id):
            await asyncio.sleep(0)

    async def scenario():
        repository.gate = asyncio.Event()
        blocked = asyncio.create_task(service.deposit("A1", Decimal("1")))
        await asyncio.wait_for(wait_until_locked("A1"), timeout=1)

        await asyncio.wait_for(service.deposit("B1", Decimal("1")), timeout=1)
        assert not blocked.done()

        repository.gate.set()
        await blocked

    run(scenario())

    assert run(inner.load("A1")).balance == Decimal("11.00")
    assert run(inner.load("B1")).balance == Decimal("11.00")


def test_lock_registry_forgets_idle_accounts():
    registry = AccountLockRegistry()

    async def scenario():
        async with registry.hold("A1"):
            assert registry.is_locked("A1")
            assert len(registry) == 1
        assert not registry.is_locked("A1")
        assert len(registry) == 0

    run(scenario())


def test_lock_registry_serializes_holders_of_the_same_account():
    registry = AccountLockRegistry()
    trace = []

    async def worker(name):
        async with registry.hold("A1"):
            trace.append(f"{name}:in")
            await asyncio.sleep(0)
            trace.append(f"{name}:out")

    async def scenario():
        await asyncio.gather(worker("a"), worker("b"), worker("c"))

    run(scenario())

    assert trace == ["a:in", "a:out", "b:in", "b:out", "c:in", "c:out"]
    assert len(registry) == 0


class ConflictingRepository:
    """Fails the first ``conflicts`` saves as if another writer got there first."""

    def __init__(self, inner, conflicts):
        self.inner = inner
        self.conflicts = conflicts
        self.loads = 0

    async def load(self, account_id):
        self.loads += 1
        return await self.inner.load(account_id)

    async def save(self, account):
        if self.conflicts:
            self.conflicts -= 1
            raise ConcurrentModificationError(account.id, account.version)
        await self.inner.save(account)


def test_conflicting_save_is_retried_from_load():
    inner = InMemoryAccountRepository([Account(id="A1", balance=Decimal("100.00"))])
    repository = ConflictingRepository(inner, conflicts=2)
    service = LedgerService(repository, max_save_attempts=3)

    run(service.withdraw("A1", Decimal("25")))

    assert repository.loads == 3
    account = run(inner.load("A1"))
    assert account.balance == Decimal("75.00")
    assert len(account.statements) == 1


def test_persistent_conflicts_surface_as_unavailable():
    inner = InMemoryAccountRepository([Account(id="A1", balance=Decimal("100.00"))])
    repository = ConflictingRepository(inner, conflicts=5)
    service = LedgerService(repository, max_save_attempts=2)

    with pytest.raises(LedgerUnavailableError) as excinfo:
        run(service.deposit("A1", Decimal("1")))

    assert excinfo.value.retriable
    assert excinfo.value.kind is LedgerErrorKind.UNAVAILABLE
    account = run(inner.load("A1"))
    assert account.balance == Decimal("100.00")
    assert account.statements == []
    assert len(service.locks) == 0


def test_stale_save_is_rejected_by_in_memory_store():
    repository = InMemoryAccountRepository([Account(id="A1", balance=Decimal("10.00"))])

    async def scenario():
        first = await repository.load("A1")
        second = await repository.load("A1")
        first.balance = Decimal("5.00")
        await repository.save(first)
        second.balance = Decimal("1.00")
        with pytest.raises(ConcurrentModificationError):
            await repository.save(second)

    run(scenario())

    assert run(repository.load("A1")).balance == Decimal("5.00")


def test_slow_store_times_out_and_releases_the_lock():
    inner = InMemoryAccountRepository([Account(id="A1", balance=Decimal("100.00"))])
    service = LedgerService(YieldingRepository(inner, delay=0.5), operation_timeout=0.05)

    with pytest.raises(LedgerUnavailableError):
        run(service.withdraw("A1", Decimal("10")))

    assert len(service.locks) == 0
    assert run(inner.load("A1")).balance == Decimal("100.00")


def test_save_finishing_after_the_deadline_is_reported_as_applied():
    inner = InMemoryAccountRepository([Account(id="A1", balance=Decimal("100.00"))])

    class SlowSaveRepository:
        async def load(self, account_id):
            return await inner.load(account_id)

        async def save(self, account):
            await asyncio.sleep(0.2)
            await inner.save(account)

    service = LedgerService(SlowSaveRepository(), operation_timeout=0.05)

    run(service.deposit("A1", Decimal("25")))

    account = run(inner.load("A1"))
    assert account.balance == Decimal("125.00")
    assert len(account.statements) == 1
    assert len(service.locks) == 0


def test_conflict_after_the_deadline_still_times_out():
    inner = InMemoryAccountRepository([Account(id="A1", balance=Decimal("100.00"))])

    class LateConflictRepository:
        async def load(self, account_id):
            return await inner.load(account_id)

        async def save(self, account):
            await asyncio.sleep(0.2)
            raise ConcurrentModificationError(account.id, account.version)

    service = LedgerService(LateConflictRepository(), operation_timeout=0.05)

    with pytest.raises(LedgerUnavailableError):
        run(service.deposit("A1", Decimal("25")))

    assert len(service.locks) == 0
    assert run(inner.load("A1")).balance == Decimal("100.00")


def test_reads_see_balance_and_statements_together():
    inner = InMemoryAccountRepository([Account(id="A1", balance=Decimal("100.00"))])
    service = LedgerService(YieldingRepository(inner))

    async def scenario():
        snapshots = []

        async def reader():
            for _ in range(30):
                snapshots.append(await inner.load("A1"))
                await asyncio.sleep(0)

        await asyncio.gather(
            reader(),
            *(service.withdraw("A1", Decimal("3")) for _ in range(10)),
            return_exceptions=True,
        )
        return snapshots

    for snapshot in run(scenario()):
        snapshot.check_invariants()
        assert snapshot.balance == Decimal("100.00") - Decimal("3") * len(snapshot.statements)
