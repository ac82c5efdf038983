"""
Report Snapshot Models

Reports are computed as structured snapshots first and rendered to text
second. The snapshots are what tests assert against; the text is what
the user reads.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from financeai.models.ledger import AccountCategory


class ReportLine(BaseModel):
    """One account line in a report."""
    model_config = ConfigDict(frozen=True)

    code: str
    label: str
    category: AccountCategory
    balance: Decimal


class BalanceSheet(BaseModel):
    """Assets = Liabilities + Equity, as of now."""
    model_config = ConfigDict(frozen=True)

    generated_at: datetime = Field(default_factory=datetime.utcnow)
    assets: list[ReportLine]
    liabilities: list[ReportLine]
    equity: list[ReportLine]
    current_earnings: Decimal = Field(
        ...,
        description="Income minus expenses not yet closed into equity"
    )
    total_assets: Decimal
    total_liabilities: Decimal
    total_equity: Decimal
    is_balanced: bool = Field(
        ...,
        description="Does the accounting identity hold within tolerance?"
    )

    @property
    def total_liabilities_and_equity(self) -> Decimal:
        return self.total_liabilities + self.total_equity


class IncomeStatement(BaseModel):
    """Income, expenses and the resulting profit or loss."""
    model_config = ConfigDict(frozen=True)

    generated_at: datetime = Field(default_factory=datetime.utcnow)
    income: list[ReportLine]
    expenses: list[ReportLine]
    total_income: Decimal
    total_expenses: Decimal
    net: Decimal

    @property
    def is_profit(self) -> bool:
        return self.net >= 0

    @property
    def result_label(self) -> str:
        return "Net Profit" if self.is_profit else "Net Loss"


class TrialBalance(BaseModel):
    """Debit-normal balances against credit-normal balances."""
    model_config = ConfigDict(frozen=True)

    generated_at: datetime = Field(default_factory=datetime.utcnow)
    debit_lines: list[ReportLine]
    credit_lines: list[ReportLine]
    total_debits: Decimal
    total_credits: Decimal
    tolerance: Decimal
    is_balanced: bool

    @property
    def difference(self) -> Decimal:
        return self.total_debits - self.total_credits


class CashOverview(BaseModel):
    """Quick cash position for 'what's my balance?' questions."""
    model_config = ConfigDict(frozen=True)

    generated_at: datetime = Field(default_factory=datetime.utcnow)
    cash: Decimal
    total_income: Decimal
    total_expenses: Decimal
    net_change: Decimal
