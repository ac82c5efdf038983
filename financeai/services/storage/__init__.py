"""
Storage Services Package

Provides abstract interfaces and concrete implementations for the
journal and the audit log. Currently implements in-memory storage,
but designed to be swappable.
"""

from financeai.services.storage.interface import (
    AuditStorageInterface,
    DuplicateError,
    JournalStorageInterface,
    NotFoundError,
    StorageError,
)
from financeai.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryJournalStorage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "JournalStorageInterface",
    # Exceptions
    "DuplicateError",
    "NotFoundError",
    "StorageError",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryJournalStorage",
]
