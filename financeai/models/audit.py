"""
Audit Models for FinanceAI

Every message that reaches the core leaves a trail:
1. What was received
2. How it was classified (and which rules were skipped)
3. What was posted to the books, or why it was rejected

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """
    Types of events we audit.

    Every step of the message pipeline has its own event type.
    """
    # Input
    MESSAGE_RECEIVED = "message_received"
    MESSAGE_REJECTED = "message_rejected"

    # Parsing
    TRANSACTION_PARSED = "transaction_parsed"
    AMOUNT_MALFORMED = "amount_malformed"
    REPORT_REQUESTED = "report_requested"
    NO_MATCH = "no_match"

    # LLM payloads
    LLM_PAYLOAD_ACCEPTED = "llm_payload_accepted"
    LLM_PAYLOAD_REJECTED = "llm_payload_rejected"

    # Ledger
    JOURNAL_POSTED = "journal_posted"
    TRANSACTION_REJECTED = "transaction_rejected"

    # Output
    REPORT_GENERATED = "report_generated"
    GUIDANCE_RETURNED = "guidance_returned"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'journal_entry', 'message')"
    )
    entity_id: Optional[UUID] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - all events for one message share this
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., all events for one message)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


def _preview(message: str, limit: int = 80) -> str:
    return message if len(message) <= limit else message[:limit - 3] + "..."


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.message_received(message, correlation_id)
        event = AuditEventBuilder.journal_posted(entry, correlation_id)
    """

    @staticmethod
    def message_received(
        message: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MESSAGE_RECEIVED,
            entity_type="message",
            correlation_id=correlation_id,
            description=f"Message received: {_preview(message)}",
            details={
                "length": len(message),
            },
            is_user_action=True,
        )

    @staticmethod
    def message_rejected(
        reason: str,
        length: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MESSAGE_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="message",
            correlation_id=correlation_id,
            description=f"Message not processed: {reason}",
            details={
                "reason": reason,
                "length": length,
            },
        )

    @staticmethod
    def transaction_parsed(
        transaction_id: UUID,
        kind: str,
        amount: str,
        rule_name: Optional[str],
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_PARSED,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"Classified as {kind} of {amount}",
            details={
                "kind": kind,
                "amount": amount,
                "rule_name": rule_name,
            },
        )

    @staticmethod
    def amount_malformed(
        rule_name: str,
        raw_amount: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.AMOUNT_MALFORMED,
            severity=AuditSeverity.DEBUG,
            entity_type="message",
            correlation_id=correlation_id,
            description=f"Rule {rule_name} skipped: amount {_preview(raw_amount, 40)!r} did not parse",
            details={
                "rule_name": rule_name,
                "raw_amount": raw_amount,
            },
        )

    @staticmethod
    def report_requested(
        report_kind: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REPORT_REQUESTED,
            entity_type="report",
            correlation_id=correlation_id,
            description=f"Report requested: {report_kind}",
            details={
                "report_kind": report_kind,
            },
            is_user_action=True,
        )

    @staticmethod
    def no_match(
        malformed_count: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.NO_MATCH,
            entity_type="message",
            correlation_id=correlation_id,
            description="Message matched no transaction rule or report keyword",
            details={
                "malformed_count": malformed_count,
            },
        )

    @staticmethod
    def llm_payload_accepted(
        transaction_id: UUID,
        kind: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LLM_PAYLOAD_ACCEPTED,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"Transaction payload accepted from assistant reply: {kind}",
            details={
                "kind": kind,
            },
        )

    @staticmethod
    def llm_payload_rejected(
        error_message: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LLM_PAYLOAD_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="transaction",
            correlation_id=correlation_id,
            description="Transaction payload in assistant reply was invalid",
            error_message=error_message,
        )

    @staticmethod
    def journal_posted(
        entry_id: UUID,
        transaction_id: UUID,
        debit_account: str,
        credit_account: str,
        amount: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.JOURNAL_POSTED,
            entity_type="journal_entry",
            entity_id=entry_id,
            correlation_id=correlation_id,
            description=f"Posted {amount}: debit {debit_account}, credit {credit_account}",
            details={
                "transaction_id": str(transaction_id),
                "debit_account": debit_account,
                "credit_account": credit_account,
                "amount": amount,
            },
        )

    @staticmethod
    def transaction_rejected(
        transaction_id: UUID,
        error_code: str,
        error_message: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_REJECTED,
            severity=AuditSeverity.ERROR,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"Transaction rejected by ledger: {error_code}",
            error_code=error_code,
            error_message=error_message,
        )

    @staticmethod
    def report_generated(
        report_kind: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REPORT_GENERATED,
            entity_type="report",
            correlation_id=correlation_id,
            description=f"Report generated: {report_kind}",
            details={
                "report_kind": report_kind,
            },
        )

    @staticmethod
    def guidance_returned(
        topic: str,
        language: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.GUIDANCE_RETURNED,
            entity_type="message",
            correlation_id=correlation_id,
            description=f"Guidance returned: {topic}",
            details={
                "topic": topic,
                "language": language,
            },
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
