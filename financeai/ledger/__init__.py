"""
Ledger Package

Chart of accounts, the double-entry posting engine, session-owned
books and the per-session ledger manager.
"""

from financeai.ledger.engine import (
    POSTING_TEMPLATES,
    DuplicateTransactionError,
    InvariantViolation,
    LedgerEngine,
    OverRepaymentError,
    PreparedPosting,
)
from financeai.ledger.ledger import Ledger
from financeai.ledger.registry import (
    CAPITAL,
    CASH,
    CHART_OF_ACCOUNTS,
    LOANS,
    OTHER_INCOME,
    AccountRegistry,
    LedgerError,
    UnknownAccountError,
    asset_account_code,
    expense_account_code,
)
from financeai.ledger.sessions import LedgerSessionManager

__all__ = [
    # Registry
    "AccountRegistry",
    "CHART_OF_ACCOUNTS",
    "CAPITAL",
    "CASH",
    "LOANS",
    "OTHER_INCOME",
    "asset_account_code",
    "expense_account_code",
    # Engine
    "LedgerEngine",
    "POSTING_TEMPLATES",
    "PreparedPosting",
    # Books
    "Ledger",
    "LedgerSessionManager",
    # Exceptions
    "DuplicateTransactionError",
    "InvariantViolation",
    "LedgerError",
    "OverRepaymentError",
    "UnknownAccountError",
]
