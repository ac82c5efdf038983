"""
Report Generator

Builds report snapshots from the account registry and renders them as
chat text.

CRITICAL: Reports are a pure read. Nothing in this module changes a
balance. An identity failure is shown to the user as a failed check,
never raised.
"""

from decimal import Decimal
from typing import Union

from financeai.ledger.registry import CASH, AccountRegistry
from financeai.models.ledger import (
    MONEY_QUANTUM,
    Account,
    AccountCategory,
    ReportKind,
    format_money,
)
from financeai.models.reports import (
    BalanceSheet,
    CashOverview,
    IncomeStatement,
    ReportLine,
    TrialBalance,
)


Report = Union[BalanceSheet, IncomeStatement, TrialBalance, CashOverview]


def _lines(accounts: list[Account]) -> list[ReportLine]:
    return [
        ReportLine(
            code=account.code,
            label=account.label,
            category=account.category,
            balance=account.balance,
        )
        for account in accounts
    ]


def _check(ok: bool) -> str:
    return "✅" if ok else "❌"


class ReportGenerator:
    """Balance sheet, income statement, trial balance and cash overview."""

    def __init__(
        self,
        currency_symbol: str = "$",
        tolerance: Decimal = MONEY_QUANTUM,
    ):
        self.currency_symbol = currency_symbol
        self.tolerance = tolerance

    def _money(self, amount: Decimal) -> str:
        return format_money(amount, self.currency_symbol)

    # =========================================================================
    # SNAPSHOTS
    # =========================================================================

    def balance_sheet(self, registry: AccountRegistry) -> BalanceSheet:
        totals = registry.totals()
        return BalanceSheet(
            assets=_lines(registry.accounts(AccountCategory.ASSET)),
            liabilities=_lines(registry.accounts(AccountCategory.LIABILITY)),
            equity=_lines(registry.accounts(AccountCategory.EQUITY)),
            current_earnings=totals.net_income,
            total_assets=totals.total_assets,
            total_liabilities=totals.total_liabilities,
            total_equity=totals.total_equity,
            is_balanced=totals.is_balanced(self.tolerance),
        )

    def income_statement(self, registry: AccountRegistry) -> IncomeStatement:
        totals = registry.totals()
        return IncomeStatement(
            income=_lines(registry.accounts(AccountCategory.INCOME)),
            expenses=_lines(registry.accounts(AccountCategory.EXPENSE)),
            total_income=totals.total_income,
            total_expenses=totals.total_expenses,
            net=totals.net_income,
        )

    def trial_balance(self, registry: AccountRegistry) -> TrialBalance:
        debit_accounts = [a for a in registry if a.is_debit_normal]
        credit_accounts = [a for a in registry if not a.is_debit_normal]
        total_debits = sum((a.balance for a in debit_accounts), Decimal("0.00"))
        total_credits = sum((a.balance for a in credit_accounts), Decimal("0.00"))
        return TrialBalance(
            debit_lines=_lines(debit_accounts),
            credit_lines=_lines(credit_accounts),
            total_debits=total_debits,
            total_credits=total_credits,
            tolerance=self.tolerance,
            is_balanced=abs(total_debits - total_credits) <= self.tolerance,
        )

    def cash_overview(self, registry: AccountRegistry) -> CashOverview:
        totals = registry.totals()
        return CashOverview(
            cash=registry.balance(CASH),
            total_income=totals.total_income,
            total_expenses=totals.total_expenses,
            net_change=totals.net_income,
        )

    def build(self, kind: ReportKind, registry: AccountRegistry) -> Report:
        builders = {
            ReportKind.BALANCE_SHEET: self.balance_sheet,
            ReportKind.INCOME_STATEMENT: self.income_statement,
            ReportKind.TRIAL_BALANCE: self.trial_balance,
            ReportKind.CASH_BALANCE: self.cash_overview,
        }
        return builders[kind](registry)

    # =========================================================================
    # RENDERING
    # =========================================================================

    def render_report(self, kind: ReportKind, registry: AccountRegistry) -> str:
        """Formatted text for a report over the registry's current state."""
        report = self.build(kind, registry)
        if isinstance(report, BalanceSheet):
            return self.render_balance_sheet(report)
        if isinstance(report, IncomeStatement):
            return self.render_income_statement(report)
        if isinstance(report, TrialBalance):
            return self.render_trial_balance(report)
        return self.render_cash_overview(report)

    def _section(self, title: str, lines: list[ReportLine]) -> list[str]:
        out = [f"**{title}**"]
        shown = [line for line in lines if line.balance != 0]
        if not shown:
            out.append("• (none)")
        out.extend(f"• {line.label}: {self._money(line.balance)}" for line in shown)
        return out

    def render_balance_sheet(self, sheet: BalanceSheet) -> str:
        parts = ["📊 **Balance Sheet**", ""]
        parts += self._section("Assets", sheet.assets)
        parts.append(f"Total Assets: {self._money(sheet.total_assets)}")
        parts.append("")
        parts += self._section("Liabilities", sheet.liabilities)
        parts.append(f"Total Liabilities: {self._money(sheet.total_liabilities)}")
        parts.append("")
        parts += self._section("Equity", sheet.equity)
        parts.append(f"• Current earnings: {self._money(sheet.current_earnings)}")
        parts.append(f"Total Equity: {self._money(sheet.total_equity)}")
        parts.append("")
        parts.append(
            f"{_check(sheet.is_balanced)} Assets ({self._money(sheet.total_assets)}) "
            f"{'=' if sheet.is_balanced else '≠'} Liabilities + Equity "
            f"({self._money(sheet.total_liabilities_and_equity)})"
        )
        return "\n".join(parts)

    def render_income_statement(self, statement: IncomeStatement) -> str:
        parts = ["📈 **Income Statement**", ""]
        parts += self._section("Income", statement.income)
        parts.append(f"Total Income: {self._money(statement.total_income)}")
        parts.append("")
        parts += self._section("Expenses", statement.expenses)
        parts.append(f"Total Expenses: {self._money(statement.total_expenses)}")
        parts.append("")
        marker = "🟢" if statement.is_profit else "🔴"
        parts.append(
            f"{marker} **{statement.result_label}**: {self._money(abs(statement.net))}"
        )
        return "\n".join(parts)

    def render_trial_balance(self, trial: TrialBalance) -> str:
        parts = ["⚖️ **Trial Balance**", ""]
        parts += self._section("Debit balances", trial.debit_lines)
        parts.append(f"Total Debits: {self._money(trial.total_debits)}")
        parts.append("")
        parts += self._section("Credit balances", trial.credit_lines)
        parts.append(f"Total Credits: {self._money(trial.total_credits)}")
        parts.append("")
        if trial.is_balanced:
            parts.append(f"{_check(True)} Debits equal credits")
        else:
            parts.append(
                f"{_check(False)} Out of balance by {self._money(abs(trial.difference))}"
            )
        return "\n".join(parts)

    def render_cash_overview(self, overview: CashOverview) -> str:
        sign = "+" if overview.net_change >= 0 else "-"
        return "\n".join([
            f"💳 **Current Balance**: {self._money(overview.cash)}",
            "",
            "📊 **Quick Overview**:",
            f"• Income: +{self._money(overview.total_income)}",
            f"• Expenses: -{self._money(overview.total_expenses)}",
            f"• Net change: {sign}{self._money(abs(overview.net_change))}",
        ])
