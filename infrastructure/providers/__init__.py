"""
Ledger providers package.
"""

from .in_memory_provider import InMemoryLedgerProvider

__all__ = ['InMemoryLedgerProvider']
