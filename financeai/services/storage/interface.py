"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Keep the ledger purely in memory today
2. Add a durable journal later without touching the ledger engine
3. Use the same fakes in tests and in production

Both stores are append-only. Journal entries and audit events are
never updated or deleted once written.
"""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from financeai.models.audit import AuditEvent
from financeai.models.ledger import JournalEntry


class JournalStorageInterface(ABC):
    """
    Abstract interface for the journal (the ledger's audit trail).

    Any storage implementation must implement these methods.
    """

    @abstractmethod
    def append_entry(self, entry: JournalEntry) -> None:
        """
        Append a journal entry.

        Raises:
            DuplicateError: If an entry with the same ID already exists
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def get_entry(self, entry_id: UUID) -> Optional[JournalEntry]:
        """
        Retrieve an entry by its ID.

        Returns:
            The entry if found, None otherwise
        """
        pass

    @abstractmethod
    def list_entries(
        self,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[JournalEntry]:
        """
        List entries in posting order (oldest first).

        Args:
            limit: Maximum number of results (None = all)
            offset: Number of results to skip
        """
        pass

    @abstractmethod
    def count(self) -> int:
        """Number of entries stored."""
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a correlation ID (e.g., one chat message).

        Returns:
            List of related events in chronological order
        """
        pass

    @abstractmethod
    def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass
