"""
Audit Logger

DESIGN DECISION: Every message that reaches the core leaves a trail.
This provides:
1. Traceability from a chat message to the journal entry it produced
2. A record of why a transaction was rejected
3. Debugging capability for rule fallthroughs

The audit logger:
- Gracefully handles failures (a storage error never breaks a chat turn)
- Supports correlation IDs so all events for one message can be traced
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

import structlog

from financeai.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from financeai.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(log_level: str = "INFO") -> None:
    """Route structured logs to stderr at the given level."""
    logging.basicConfig(format="%(message)s", level=getattr(logging, log_level))


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage (for the per-message trail), when configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("audit")

    @property
    def storage(self) -> Optional[AuditStorageInterface]:
        return self._storage

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    def log_message_received(self, message: str, correlation_id: UUID) -> None:
        self.log(AuditEventBuilder.message_received(message, correlation_id))

    def log_message_rejected(
        self,
        reason: str,
        length: int,
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.message_rejected(reason, length, correlation_id))

    def log_transaction_parsed(
        self,
        transaction_id: UUID,
        kind: str,
        amount: str,
        rule_name: Optional[str],
        correlation_id: UUID,
    ) -> None:
        """Log a message classified as a transaction."""
        event = AuditEventBuilder.transaction_parsed(
            transaction_id=transaction_id,
            kind=kind,
            amount=amount,
            rule_name=rule_name,
            correlation_id=correlation_id,
        )
        self.log(event)

    def log_amount_malformed(
        self,
        rule_name: str,
        raw_amount: str,
        correlation_id: UUID,
    ) -> None:
        """Log a rule skipped because its amount did not parse."""
        event = AuditEventBuilder.amount_malformed(
            rule_name=rule_name,
            raw_amount=raw_amount,
            correlation_id=correlation_id,
        )
        self.log(event)

    def log_report_requested(self, report_kind: str, correlation_id: UUID) -> None:
        self.log(AuditEventBuilder.report_requested(report_kind, correlation_id))

    def log_no_match(self, malformed_count: int, correlation_id: UUID) -> None:
        self.log(AuditEventBuilder.no_match(malformed_count, correlation_id))

    def log_llm_payload_accepted(
        self,
        transaction_id: UUID,
        kind: str,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.llm_payload_accepted(
            transaction_id=transaction_id,
            kind=kind,
            correlation_id=correlation_id,
        )
        self.log(event)

    def log_llm_payload_rejected(self, error_message: str, correlation_id: UUID) -> None:
        self.log(AuditEventBuilder.llm_payload_rejected(error_message, correlation_id))

    def log_journal_posted(
        self,
        entry_id: UUID,
        transaction_id: UUID,
        debit_account: str,
        credit_account: str,
        amount: str,
        correlation_id: UUID,
    ) -> None:
        """Log a journal entry posted to the ledger."""
        event = AuditEventBuilder.journal_posted(
            entry_id=entry_id,
            transaction_id=transaction_id,
            debit_account=debit_account,
            credit_account=credit_account,
            amount=amount,
            correlation_id=correlation_id,
        )
        self.log(event)

    def log_transaction_rejected(
        self,
        transaction_id: UUID,
        error_code: str,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        """Log a transaction the ledger refused to post."""
        event = AuditEventBuilder.transaction_rejected(
            transaction_id=transaction_id,
            error_code=error_code,
            error_message=error_message,
            correlation_id=correlation_id,
        )
        self.log(event)

    def log_report_generated(self, report_kind: str, correlation_id: UUID) -> None:
        self.log(AuditEventBuilder.report_generated(report_kind, correlation_id))

    def log_guidance_returned(
        self,
        topic: str,
        language: str,
        correlation_id: UUID,
    ) -> None:
        self.log(AuditEventBuilder.guidance_returned(topic, language, correlation_id))

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        event = AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        )
        self.log(event)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of handling one chat message.
    Pass it through all subsequent operations.
    """
    return uuid4()
