"""
Chat Boundary Models

ChatResult is the entire contract the chat UI relies on:
render `response_text`, and when `transaction` is present,
render a transaction card from `transaction` and `balance_summary`.
"""

from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

from financeai.models.ledger import JournalEntry, ReportKind, Transaction


class BalanceSummary(BaseModel):
    """Cash before and after a posted transaction."""
    model_config = ConfigDict(frozen=True)

    previous_balance: Decimal
    new_balance: Decimal

    @property
    def change(self) -> Decimal:
        return self.new_balance - self.previous_balance


class ChatResult(BaseModel):
    """What the core hands back for one message."""
    model_config = ConfigDict(frozen=True)

    response_text: str
    transaction: Optional[Transaction] = None
    journal_entry: Optional[JournalEntry] = None

    report_kind: Optional[ReportKind] = None
    balance_summary: Optional[BalanceSummary] = None
    error: Optional[str] = Field(
        default=None,
        description="Diagnostic when a transaction was rejected"
    )
    correlation_id: UUID = Field(default_factory=uuid4)

    @property
    def recorded(self) -> bool:
        """Was a transaction posted to the ledger?"""
        return self.journal_entry is not None
