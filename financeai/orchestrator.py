"""
Main Orchestrator for FinanceAI

This module ties together all the components and defines the
end-to-end flow for one chat message:

    text → parse → apply to the session ledger → render → ChatResult

DESIGN DECISION: The orchestrator enforces the boundaries:
- Only the ledger engine changes balances
- A rejected transaction never changes the books; the user gets a diagnostic
- A message that is neither a transaction nor a report gets guidance, never an error
- Unexpected failures are audited as system errors and answered, not raised
- Every step is audited under one correlation id

Transactions embedded by the external LLM in its own replies go through
exactly the same ledger path as rule-parsed ones.
"""

import threading
from typing import Optional
from uuid import UUID

import structlog

from financeai.audit import AuditLogger, configure_logging, create_correlation_id
from financeai.config import Settings, get_settings
from financeai.ledger import Ledger, LedgerError, LedgerSessionManager
from financeai.models.chat import BalanceSummary, ChatResult
from financeai.models.ledger import (
    JournalEntry,
    NoMatch,
    ReportQuery,
    Transaction,
    TransactionKind,
    format_money,
)
from financeai.parsing import TransactionParser, extract_transaction_payload
from financeai.reports import (
    EMPTY_MESSAGE_PROMPT,
    GuidanceResponder,
    ReportGenerator,
    seeded_chooser,
)
from financeai.services.storage import InMemoryAuditStorage


logger = structlog.get_logger(__name__)

KIND_LABELS = {
    TransactionKind.EXPENSE: "expense",
    TransactionKind.INCOME: "income",
    TransactionKind.LOAN_RECEIVED: "loan",
    TransactionKind.LOAN_REPAYMENT: "loan repayment",
    TransactionKind.ASSET_PURCHASE: "asset purchase",
}


class ChatFlow:
    """
    Orchestrates the message flow for one session's ledger.

    Flow:
    1. Guard → empty or oversized input is answered without parsing
    2. Parse → Transaction, ReportQuery or NoMatch
    3. Apply → post the transaction (atomic; rejection leaves books intact)
    4. Render → confirmation, report text or guidance
    """

    def __init__(
        self,
        ledger: Optional[Ledger] = None,
        parser: Optional[TransactionParser] = None,
        report_generator: Optional[ReportGenerator] = None,
        guidance: Optional[GuidanceResponder] = None,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[Settings] = None,
    ):
        settings = settings or get_settings()
        ledger_settings = settings.ledger
        chat_settings = settings.chat

        self._ledger = ledger or Ledger.from_settings(ledger_settings)
        self._parser = parser or TransactionParser(
            default_loan_counterparty=ledger_settings.default_loan_counterparty,
        )
        self._reports = report_generator or ReportGenerator(
            currency_symbol=ledger_settings.currency_symbol,
            tolerance=ledger_settings.balance_tolerance,
        )
        self._guidance = guidance or GuidanceResponder(
            chooser=seeded_chooser(chat_settings.guidance_seed),
            default_language=chat_settings.default_language,
        )
        self._audit_logger = audit_logger
        self._max_length = chat_settings.max_message_length
        self._language = chat_settings.default_language

    @property
    def ledger(self) -> Ledger:
        return self._ledger

    def welcome(self) -> str:
        return self._guidance.welcome()

    def handle_message(
        self,
        message: str,
        language: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> ChatResult:
        """
        Answer one user message.

        Never raises: parser misses become guidance, ledger rejections
        become a diagnostic result and anything unexpected is audited as
        a system error.
        """
        correlation_id = correlation_id or create_correlation_id()
        try:
            return self._handle_message(message, language, correlation_id)
        except Exception as e:
            return self._failure(
                e,
                "⚠️ Something went wrong while handling your message. Please try again.",
                correlation_id,
            )

    def _handle_message(
        self,
        message: str,
        language: Optional[str],
        correlation_id: UUID,
    ) -> ChatResult:
        text = (message or "").strip()

        if not text:
            self._audit("log_message_rejected", "empty", 0, correlation_id)
            return ChatResult(
                response_text=EMPTY_MESSAGE_PROMPT,
                correlation_id=correlation_id,
            )
        if len(text) > self._max_length:
            self._audit("log_message_rejected", "too_long", len(text), correlation_id)
            return ChatResult(
                response_text=(
                    f"That message is too long ({len(text)} characters). "
                    f"Please keep it under {self._max_length} characters."
                ),
                correlation_id=correlation_id,
            )

        self._audit("log_message_received", text, correlation_id)

        report = self._parser.parse_detailed(text)
        for skipped in report.malformed:
            self._audit(
                "log_amount_malformed",
                skipped.rule_name,
                skipped.raw_amount,
                correlation_id,
            )

        result = report.result
        if isinstance(result, Transaction):
            self._audit(
                "log_transaction_parsed",
                result.id,
                result.kind.value,
                str(result.amount),
                result.rule_name,
                correlation_id,
            )
            return self.apply_transaction(result, correlation_id)

        if isinstance(result, ReportQuery):
            self._audit("log_report_requested", result.kind.value, correlation_id)
            with self._ledger.reading() as registry:
                response_text = self._reports.render_report(result.kind, registry)
            self._audit("log_report_generated", result.kind.value, correlation_id)
            return ChatResult(
                response_text=response_text,
                report_kind=result.kind,
                correlation_id=correlation_id,
            )

        return self._guide(result, language, len(report.malformed), correlation_id)

    def handle_assistant_reply(
        self,
        reply: str,
        correlation_id: Optional[UUID] = None,
    ) -> ChatResult:
        """
        Post a transaction the external LLM embedded in its reply.

        The reply text (block removed) is passed through as the response;
        a confirmation is appended when a transaction was posted.
        """
        correlation_id = correlation_id or create_correlation_id()
        try:
            return self._handle_assistant_reply(reply, correlation_id)
        except Exception as e:
            return self._failure(
                e,
                "⚠️ Something went wrong while reading the assistant's reply. Please try again.",
                correlation_id,
            )

    def _handle_assistant_reply(self, reply: str, correlation_id: UUID) -> ChatResult:
        extraction = extract_transaction_payload(
            reply,
            category_classifier=self._parser.category_classifier,
            asset_classifier=self._parser.asset_classifier,
            today=self._parser.today(),
        )

        if extraction.transaction is None:
            if extraction.found_block:
                self._audit("log_llm_payload_rejected", extraction.error or "", correlation_id)
            return ChatResult(
                response_text=extraction.text,
                error=extraction.error,
                correlation_id=correlation_id,
            )

        transaction = extraction.transaction
        self._audit(
            "log_llm_payload_accepted",
            transaction.id,
            transaction.kind.value,
            correlation_id,
        )
        posted = self.apply_transaction(transaction, correlation_id)
        if not extraction.text:
            return posted
        return posted.model_copy(update={
            "response_text": f"{extraction.text}\n\n{posted.response_text}",
        })

    def apply_transaction(
        self,
        transaction: Transaction,
        correlation_id: Optional[UUID] = None,
    ) -> ChatResult:
        """Post a transaction and describe the outcome."""
        correlation_id = correlation_id or create_correlation_id()
        try:
            entry, summary = self._ledger.post(transaction)
        except LedgerError as e:
            self._audit(
                "log_transaction_rejected",
                transaction.id,
                e.code,
                str(e),
                correlation_id,
            )
            return ChatResult(
                response_text=(
                    "⚠️ I couldn't record that transaction, so your books are "
                    f"unchanged.\n\nReason: {e}"
                ),
                error=str(e),
                correlation_id=correlation_id,
            )
        except Exception as e:
            return self._failure(
                e,
                "⚠️ I couldn't record that transaction, so your books are unchanged.",
                correlation_id,
            )

        self._audit(
            "log_journal_posted",
            entry.id,
            transaction.id,
            entry.debit_posting.account_name,
            entry.credit_posting.account_name,
            str(transaction.amount),
            correlation_id,
        )
        return ChatResult(
            response_text=self.render_confirmation(transaction, entry, summary),
            transaction=transaction,
            journal_entry=entry,
            balance_summary=summary,
            correlation_id=correlation_id,
        )

    def render_confirmation(
        self,
        transaction: Transaction,
        entry: JournalEntry,
        summary: BalanceSummary,
    ) -> str:
        money = lambda amount: format_money(amount, self._reports.currency_symbol)
        lines = [
            f"✅ Transaction recorded! I've logged your {KIND_LABELS[transaction.kind]}.",
            "",
            f"💰 **Amount**: {money(transaction.amount)}",
            f"📝 **Description**: {transaction.description}",
        ]
        if transaction.counterparty:
            lines.append(f"👤 **Counterparty**: {transaction.counterparty}")
        lines += [
            f"📅 **Date**: {transaction.date.isoformat()}",
            "",
            "📒 **Journal entry**:",
            f"• {entry.debit_posting}",
            f"• {entry.credit_posting}",
            "",
            f"💳 **Cash balance**: {money(summary.new_balance)}",
        ]
        return "\n".join(lines)

    def _guide(
        self,
        result: NoMatch,
        language: Optional[str],
        malformed_count: int,
        correlation_id: UUID,
    ) -> ChatResult:
        language = language or self._language
        self._audit("log_no_match", malformed_count, correlation_id)
        response_text = self._guidance.respond(result.message, language)
        self._audit(
            "log_guidance_returned",
            self._guidance.topic(result.message),
            language,
            correlation_id,
        )
        return ChatResult(response_text=response_text, correlation_id=correlation_id)

    def _failure(self, error: Exception, response_text: str, correlation_id: UUID) -> ChatResult:
        """Audit an unexpected error and turn it into a diagnostic result."""
        error_type = type(error).__name__
        logger.exception(
            "chat_flow_failed",
            error_type=error_type,
            correlation_id=str(correlation_id),
        )
        self._audit("log_error", error_type, str(error), None, correlation_id)
        return ChatResult(
            response_text=response_text,
            error=f"{error_type}: {error}",
            correlation_id=correlation_id,
        )

    def _audit(self, method: str, *args) -> None:
        if self._audit_logger:
            getattr(self._audit_logger, method)(*args)


class ChatService:
    """
    Routes messages to per-session chat flows.

    Each session id gets its own ledger from the session manager; the
    parser, report generator, guidance and audit logger are shared.
    """

    def __init__(
        self,
        sessions: Optional[LedgerSessionManager] = None,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[Settings] = None,
    ):
        self._settings = settings or get_settings()
        ledger_settings = self._settings.ledger
        chat_settings = self._settings.chat

        self._sessions = sessions or LedgerSessionManager(settings=ledger_settings)
        self._audit_logger = audit_logger
        self._parser = TransactionParser(
            default_loan_counterparty=ledger_settings.default_loan_counterparty,
        )
        self._reports = ReportGenerator(
            currency_symbol=ledger_settings.currency_symbol,
            tolerance=ledger_settings.balance_tolerance,
        )
        self._guidance = GuidanceResponder(
            chooser=seeded_chooser(chat_settings.guidance_seed),
            default_language=chat_settings.default_language,
        )
        self._flows: dict[str, ChatFlow] = {}
        self._lock = threading.Lock()

    @property
    def sessions(self) -> LedgerSessionManager:
        return self._sessions

    def flow(self, session_id: str) -> ChatFlow:
        """The chat flow bound to a session's ledger."""
        ledger = self._sessions.get_ledger(session_id)
        with self._lock:
            flow = self._flows.get(session_id)
            if flow is None or flow.ledger is not ledger:
                flow = ChatFlow(
                    ledger=ledger,
                    parser=self._parser,
                    report_generator=self._reports,
                    guidance=self._guidance,
                    audit_logger=self._audit_logger,
                    settings=self._settings,
                )
                self._flows[session_id] = flow
            return flow

    def handle_message(
        self,
        session_id: str,
        message: str,
        language: Optional[str] = None,
    ) -> ChatResult:
        return self.flow(session_id).handle_message(message, language=language)

    def handle_assistant_reply(self, session_id: str, reply: str) -> ChatResult:
        return self.flow(session_id).handle_assistant_reply(reply)

    def welcome(self) -> str:
        return self._guidance.welcome()

    def reset(self, session_id: str) -> bool:
        """Drop a session's books and flow."""
        with self._lock:
            self._flows.pop(session_id, None)
        return self._sessions.reset(session_id)


def create_chat_service(
    use_audit_storage: bool = True,
) -> tuple[ChatService, AuditLogger]:
    """
    Factory function to create all application components.

    Args:
        use_audit_storage: Keep audit events in memory as well as logging
                    them. Set to False for local-only logging.

    Returns:
        (chat_service, audit_logger)
    """
    configure_logging(get_settings().app.log_level)
    audit_logger = AuditLogger(InMemoryAuditStorage() if use_audit_storage else None)
    service = ChatService(audit_logger=audit_logger)
    return service, audit_logger
