"""Simple dependency container for wiring core services."""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache

from app.core.config import Settings, get_settings
from app.infrastructure.database.repositories import SqlAccountRepository
from app.infrastructure.database.session import get_session_factory
from app.modules.ledger import AccountLockRegistry, LedgerService


@dataclass(slots=True)
class ApplicationContainer:
    settings: Settings
    locks: AccountLockRegistry = field(default_factory=AccountLockRegistry)
    _ledger_service: LedgerService | None = None

    @property
    def account_repository(self) -> SqlAccountRepository:
        return SqlAccountRepository(get_session_factory())

    @property
    def ledger_service(self) -> LedgerService:
        """Process-wide service, so every request shares the same account locks."""
        if self._ledger_service is None:
            self._ledger_service = LedgerService(
                self.account_repository,
                locks=self.locks,
                operation_timeout=self.settings.ledger.operation_timeout,
                max_save_attempts=self.settings.ledger.max_save_attempts,
            )
        return self._ledger_service


@lru_cache()
def get_container() -> ApplicationContainer:
    return ApplicationContainer(settings=get_settings())


__all__ = ["ApplicationContainer", "get_container"]
