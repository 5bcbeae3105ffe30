"""
Studio Store - Public API
===========================
Data-access protocol and the in-memory transactional implementation.
"""

from core.store.memory import (
    InMemoryBillingStore,
    InMemoryUnitOfWork,
    record_key,
)
from core.store.protocol import BillingStore, UnitOfWork

__all__ = [
    "BillingStore",
    "UnitOfWork",
    "InMemoryBillingStore",
    "InMemoryUnitOfWork",
    "record_key",
]
