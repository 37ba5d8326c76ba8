"""Ledger related dependency providers."""

from app.core.container import get_container
from app.modules.ledger import LedgerService


def get_ledger_service() -> LedgerService:
    return get_container().ledger_service


__all__ = [
    "get_ledger_service",
]
