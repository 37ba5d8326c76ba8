"""Feature modules and shared exports."""

from . import ledger

__all__ = [
    "ledger",
]
