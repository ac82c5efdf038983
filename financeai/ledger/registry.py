"""
Account Registry (Chart of Accounts)

A fixed set of named accounts grouped by category. The registry is built
once when a ledger is opened; at runtime only balances change, and only
the ledger engine changes them. There is no dynamic account creation.
"""

from collections.abc import Iterable, Iterator, Mapping
from decimal import Decimal
from typing import Optional

from financeai.models.ledger import (
    ZERO,
    Account,
    AccountCategory,
    AssetType,
    ExpenseCategory,
    LedgerTotals,
    quantize_money,
)


CASH = "assets.cash"
LOANS = "liabilities.loans"
CAPITAL = "equity.capital"
OTHER_INCOME = "income.other"


# (category, name, label) in report order
CHART_OF_ACCOUNTS: tuple[tuple[AccountCategory, str, str], ...] = (
    (AccountCategory.ASSET, "cash", "Cash"),
    (AccountCategory.ASSET, "equipment", "Asset:equipment"),
    (AccountCategory.ASSET, "computers", "Asset:computers"),
    (AccountCategory.ASSET, "furniture", "Asset:furniture"),
    (AccountCategory.ASSET, "vehicles", "Asset:vehicles"),
    (AccountCategory.ASSET, "other", "Asset:other"),
    (AccountCategory.LIABILITY, "loans", "Liability:loans"),
    (AccountCategory.LIABILITY, "accounts_payable", "Liability:accounts_payable"),
    (AccountCategory.EQUITY, "capital", "Equity:capital"),
    (AccountCategory.INCOME, "sales", "Income:sales"),
    (AccountCategory.INCOME, "other", "Income:other"),
    (AccountCategory.EXPENSE, "food", "Expense:food"),
    (AccountCategory.EXPENSE, "rent", "Expense:rent"),
    (AccountCategory.EXPENSE, "utilities", "Expense:utilities"),
    (AccountCategory.EXPENSE, "transportation", "Expense:transportation"),
    (AccountCategory.EXPENSE, "supplies", "Expense:supplies"),
    (AccountCategory.EXPENSE, "other", "Expense:other"),
)


def expense_account_code(category: ExpenseCategory) -> str:
    return f"{AccountCategory.EXPENSE.group}.{category.value}"


def asset_account_code(asset: AssetType) -> str:
    return f"{AccountCategory.ASSET.group}.{asset.value}"


class LedgerError(Exception):
    """Base exception for ledger operations."""
    code = "ledger_error"


class UnknownAccountError(LedgerError, KeyError):
    """An account code that is not in the chart of accounts."""
    code = "unknown_account"

    def __init__(self, account_code: str):
        self.account_code = account_code
        super().__init__(f"Account '{account_code}' is not in the chart of accounts")

    def __str__(self) -> str:
        return self.args[0]


class AccountRegistry:
    """
    The chart of accounts with running balances.

    Balances are stored on each account's normal side (a positive loan
    balance means money is owed).
    """

    def __init__(self, accounts: Iterable[Account]):
        self._accounts: dict[str, Account] = {}
        for account in accounts:
            if account.code in self._accounts:
                raise ValueError(f"Duplicate account code: {account.code}")
            self._accounts[account.code] = account

    @classmethod
    def open(cls, starting_capital: Decimal = ZERO) -> "AccountRegistry":
        """
        Build the standard chart of accounts.

        The starting capital is booked as cash contributed by the owner
        (debit Cash, credit Equity:capital), so the books open balanced.
        """
        capital = quantize_money(starting_capital)
        if capital < 0:
            raise ValueError("Starting capital cannot be negative")

        registry = cls(
            Account(
                code=f"{category.group}.{name}",
                name=name,
                label=label,
                category=category,
            )
            for category, name, label in CHART_OF_ACCOUNTS
        )
        registry._accounts[CASH].balance = capital
        registry._accounts[CAPITAL].balance = capital
        return registry

    def __contains__(self, code: object) -> bool:
        return code in self._accounts

    def __iter__(self) -> Iterator[Account]:
        return iter(self._accounts.values())

    def __len__(self) -> int:
        return len(self._accounts)

    def get(self, code: str) -> Account:
        try:
            return self._accounts[code]
        except KeyError:
            raise UnknownAccountError(code)

    def balance(self, code: str) -> Decimal:
        return self.get(code).balance

    def accounts(self, category: Optional[AccountCategory] = None) -> list[Account]:
        """Accounts in chart order, optionally limited to one category."""
        return [
            account for account in self._accounts.values()
            if category is None or account.category == category
        ]

    def totals(
        self,
        overrides: Optional[Mapping[str, Decimal]] = None,
    ) -> LedgerTotals:
        """
        Category aggregates, recomputed from balances.

        `overrides` lets the engine evaluate proposed balances
        before committing them.
        """
        overrides = overrides or {}
        sums = {category: ZERO for category in AccountCategory}
        for code, account in self._accounts.items():
            sums[account.category] += overrides.get(code, account.balance)
        return LedgerTotals(
            total_assets=sums[AccountCategory.ASSET],
            total_liabilities=sums[AccountCategory.LIABILITY],
            contributed_equity=sums[AccountCategory.EQUITY],
            total_income=sums[AccountCategory.INCOME],
            total_expenses=sums[AccountCategory.EXPENSE],
        )

    def snapshot(self) -> dict[str, Decimal]:
        """Every balance by account code."""
        return {code: account.balance for code, account in self._accounts.items()}

    def commit_balances(self, balances: Mapping[str, Decimal]) -> None:
        """
        Overwrite balances for the given accounts.

        For the ledger engine only. All codes are checked before any
        balance is written, so a bad code changes nothing.
        """
        for code in balances:
            self.get(code)
        for code, balance in balances.items():
            self._accounts[code].balance = balance
