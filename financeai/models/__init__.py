"""
Data Models Package

This package contains all Pydantic models used in FinanceAI.
All data flowing through the system must conform to these schemas.
"""

from financeai.models.ledger import (
    MONEY_QUANTUM,
    ZERO,
    Account,
    AccountCategory,
    AssetType,
    ExpenseCategory,
    JournalEntry,
    LedgerTotals,
    MalformedAmount,
    NoMatch,
    ParseReport,
    ParseResult,
    Posting,
    ReportKind,
    ReportQuery,
    Transaction,
    TransactionKind,
    TransactionSource,
    format_money,
    quantize_money,
)
from financeai.models.reports import (
    BalanceSheet,
    CashOverview,
    IncomeStatement,
    ReportLine,
    TrialBalance,
)
from financeai.models.chat import BalanceSummary, ChatResult
from financeai.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "MONEY_QUANTUM",
    "ZERO",
    "Account",
    "AccountCategory",
    "AssetType",
    "ExpenseCategory",
    "JournalEntry",
    "LedgerTotals",
    "MalformedAmount",
    "NoMatch",
    "ParseReport",
    "ParseResult",
    "Posting",
    "ReportKind",
    "ReportQuery",
    "Transaction",
    "TransactionKind",
    "TransactionSource",
    "format_money",
    "quantize_money",
    # Report snapshots
    "BalanceSheet",
    "CashOverview",
    "IncomeStatement",
    "ReportLine",
    "TrialBalance",
    # Chat boundary
    "BalanceSummary",
    "ChatResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
