"""Tests for the audit logger and storage."""

import pytest
from uuid import uuid4

from financeai.audit import AuditLogger, configure_logging, create_correlation_id
from financeai.ledger import Ledger
from financeai.models.audit import AuditEventBuilder, AuditEventType
from financeai.models.ledger import Transaction
from financeai.services.storage import (
    AuditStorageInterface,
    DuplicateError,
    InMemoryAuditStorage,
    InMemoryJournalStorage,
    NotFoundError,
)


class FailingAuditStorage(AuditStorageInterface):
    """Storage that always fails to write."""

    def append_event(self, event):
        raise RuntimeError("disk full")

    def get_events_by_correlation_id(self, correlation_id):
        return []

    def get_recent_events(self, limit=100):
        return []


class TestAuditLogger:
    """Tests for AuditLogger."""

    def test_local_only(self):
        """Test logging without storage."""
        assert AuditLogger().log(AuditEventBuilder.no_match(0, uuid4()))

    def test_persists_events(self):
        """Test that events reach storage with their correlation id."""
        storage = InMemoryAuditStorage()
        logger = AuditLogger(storage)
        correlation_id = create_correlation_id()

        logger.log_message_received("paid 25 for lunch", correlation_id)
        logger.log_report_generated("balance_sheet", correlation_id)
        logger.log_error("boom", "something broke")

        events = storage.get_events_by_correlation_id(correlation_id)
        assert [e.event_type for e in events] == [
            AuditEventType.MESSAGE_RECEIVED,
            AuditEventType.REPORT_GENERATED,
        ]
        assert storage.get_recent_events(1)[0].event_type == AuditEventType.SYSTEM_ERROR

    def test_storage_failure_does_not_raise(self):
        """Test that a failing backend is logged and reported as False."""
        logger = AuditLogger(FailingAuditStorage())
        assert logger.log(AuditEventBuilder.no_match(0, uuid4())) is False
        logger.log_guidance_returned("fallback", "en", uuid4())

    def test_correlation_ids_are_unique(self):
        """Test correlation id generation."""
        assert create_correlation_id() != create_correlation_id()


class TestInMemoryStorage:
    """Tests for the in-memory stores."""

    def test_recent_events_newest_first(self):
        """Test ordering and limits of recent events."""
        storage = InMemoryAuditStorage()
        for count in range(3):
            storage.append_event(AuditEventBuilder.no_match(count, uuid4()))
        recent = storage.get_recent_events(2)
        assert [e.details["malformed_count"] for e in recent] == [2, 1]
        assert storage.get_recent_events(0) == []

    def test_journal_append_only(self):
        """Test duplicate rejection and lookups in the journal."""
        ledger = Ledger()
        entry = ledger.apply(Transaction(kind="income", amount="5", description="x"))
        journal = ledger.journal

        assert isinstance(journal, InMemoryJournalStorage)
        assert journal.get_entry(entry.id) == entry
        assert journal.require_entry(entry.id) == entry
        with pytest.raises(DuplicateError):
            journal.append_entry(entry)
        with pytest.raises(NotFoundError):
            journal.require_entry(uuid4())
        assert journal.count() == 1

    def test_journal_paging(self):
        """Test limit and offset."""
        ledger = Ledger()
        for amount in ("1", "2", "3"):
            ledger.apply(Transaction(kind="income", amount=amount, description="x"))
        page = ledger.journal.list_entries(limit=1, offset=1)
        assert [e.total_debits for e in page] == [ledger.entries()[1].total_debits]


class TestConfigureLogging:
    """Tests for local log setup."""

    def test_configure_logging_accepts_levels(self):
        """Test that every configured level name is accepted."""
        for level in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            configure_logging(level)
