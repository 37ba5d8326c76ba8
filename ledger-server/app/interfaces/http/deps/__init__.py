"""Reusable FastAPI dependencies."""

from .ledger import get_ledger_service

__all__ = [
    "get_ledger_service",
]
