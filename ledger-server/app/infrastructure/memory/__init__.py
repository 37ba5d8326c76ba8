"""In-process repository implementations."""

from .account_repository import InMemoryAccountRepository

__all__ = ["InMemoryAccountRepository"]
