"""
In-Memory Storage Implementation

The ledger is not persisted, so memory is the production backend.
The implementation follows the abstract interface, so a file or
database backend can replace it without changing business logic.
"""

import threading
from typing import Optional
from uuid import UUID

from financeai.models.audit import AuditEvent
from financeai.models.ledger import JournalEntry
from financeai.services.storage.interface import (
    AuditStorageInterface,
    DuplicateError,
    JournalStorageInterface,
    NotFoundError,
)


class InMemoryJournalStorage(JournalStorageInterface):
    """Append-only journal held in a list."""

    def __init__(self):
        self._entries: list[JournalEntry] = []
        self._index: dict[UUID, JournalEntry] = {}
        self._lock = threading.Lock()

    def append_entry(self, entry: JournalEntry) -> None:
        with self._lock:
            if entry.id in self._index:
                raise DuplicateError(f"Journal entry {entry.id} already stored")
            self._entries.append(entry)
            self._index[entry.id] = entry

    def get_entry(self, entry_id: UUID) -> Optional[JournalEntry]:
        return self._index.get(entry_id)

    def require_entry(self, entry_id: UUID) -> JournalEntry:
        """Like get_entry, but raises NotFoundError."""
        entry = self.get_entry(entry_id)
        if entry is None:
            raise NotFoundError(f"Journal entry {entry_id} not found")
        return entry

    def list_entries(
        self,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[JournalEntry]:
        with self._lock:
            entries = self._entries[offset:]
        return entries if limit is None else entries[:limit]

    def count(self) -> int:
        return len(self._entries)


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only audit log held in a list."""

    def __init__(self):
        self._events: list[AuditEvent] = []
        self._lock = threading.Lock()

    def append_event(self, event: AuditEvent) -> bool:
        with self._lock:
            self._events.append(event)
        return True

    def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        with self._lock:
            return [e for e in self._events if e.correlation_id == correlation_id]

    def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        with self._lock:
            return list(reversed(self._events[-limit:])) if limit > 0 else []
