"""
Storage infrastructure.

This module provides the in-memory ledger store and its per-portfolio
unit of work.
"""

from .memory_store import InMemoryLedgerStore, InMemoryUnitOfWork

__all__ = ["InMemoryLedgerStore", "InMemoryUnitOfWork"]
