"""Services package."""

from financeai.services.storage import (
    AuditStorageInterface,
    DuplicateError,
    InMemoryAuditStorage,
    InMemoryJournalStorage,
    JournalStorageInterface,
    NotFoundError,
    StorageError,
)

__all__ = [
    "AuditStorageInterface",
    "DuplicateError",
    "InMemoryAuditStorage",
    "InMemoryJournalStorage",
    "JournalStorageInterface",
    "NotFoundError",
    "StorageError",
]
