"""
Core Ledger Models for FinanceAI

These models define the strict schemas for everything that flows from a
chat message into the books:
1. Accounts of the chart of accounts
2. Transactions classified from free text
3. Postings and journal entries produced by the ledger engine
4. Parse results handed back by the transaction parser

DESIGN DECISION: All money is Decimal quantized to two places.
Floats never enter the ledger, so the accounting identity can be checked
exactly instead of approximately.
"""

import datetime as dt
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional, Union
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)


MONEY_QUANTUM = Decimal("0.01")
ZERO = Decimal("0.00")


def quantize_money(value: Any) -> Decimal:
    """
    Convert a value to a two-place Decimal (half-up rounding).

    Raises ValueError for anything that is not a finite number, or that
    has more significant digits than can be held to the cent.
    """
    if isinstance(value, float):
        value = str(value)
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, TypeError, ValueError):
        raise ValueError(f"Not a monetary amount: {value!r}")
    if not amount.is_finite():
        raise ValueError(f"Not a finite amount: {value!r}")
    try:
        return amount.quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        # More significant digits than the Decimal context can hold
        raise ValueError(f"Amount too large: {value!r}")


def format_money(amount: Decimal, symbol: str = "$") -> str:
    """Format an amount as e.g. `$1,250.00` or `-$25.00`."""
    sign = "-" if amount < 0 else ""
    return f"{sign}{symbol}{abs(amount):,.2f}"


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class AccountCategory(str, Enum):
    """
    Top-level categories of the chart of accounts.

    The normal balance side is fixed by category: assets and expenses
    increase on debit, everything else increases on credit.
    """
    ASSET = "asset"
    LIABILITY = "liability"
    EQUITY = "equity"
    INCOME = "income"
    EXPENSE = "expense"

    @property
    def is_debit_normal(self) -> bool:
        return self in (AccountCategory.ASSET, AccountCategory.EXPENSE)

    @property
    def group(self) -> str:
        """Plural group name used in account codes (e.g. `assets.cash`)."""
        return {
            AccountCategory.ASSET: "assets",
            AccountCategory.LIABILITY: "liabilities",
            AccountCategory.EQUITY: "equity",
            AccountCategory.INCOME: "income",
            AccountCategory.EXPENSE: "expenses",
        }[self]


class ExpenseCategory(str, Enum):
    """Buckets for free-text expense descriptions."""
    FOOD = "food"
    RENT = "rent"
    UTILITIES = "utilities"
    TRANSPORTATION = "transportation"
    SUPPLIES = "supplies"
    OTHER = "other"


class AssetType(str, Enum):
    """Asset accounts in the chart of accounts."""
    CASH = "cash"
    EQUIPMENT = "equipment"
    COMPUTERS = "computers"
    FURNITURE = "furniture"
    VEHICLES = "vehicles"
    OTHER = "other"


class TransactionKind(str, Enum):
    """
    What a message means in bookkeeping terms.

    Each kind maps to one fixed two-posting template in the ledger engine.
    """
    EXPENSE = "expense"
    INCOME = "income"
    LOAN_RECEIVED = "loan_received"
    LOAN_REPAYMENT = "loan_repayment"
    ASSET_PURCHASE = "asset_purchase"


class TransactionSource(str, Enum):
    """Where a transaction candidate came from."""
    RULES = "rules"  # Deterministic pattern rules
    LLM = "llm"      # Payload block in an assistant reply


class ReportKind(str, Enum):
    """Reports the user can ask for."""
    BALANCE_SHEET = "balance_sheet"
    INCOME_STATEMENT = "income_statement"
    TRIAL_BALANCE = "trial_balance"
    CASH_BALANCE = "cash_balance"


# =============================================================================
# ACCOUNTS
# =============================================================================

class Account(BaseModel):
    """
    A single account of the chart of accounts.

    CRITICAL: `balance` is only ever changed by the ledger engine.
    It is stored on the account's normal side, so a positive balance
    on a liability means money is owed.
    """
    model_config = ConfigDict(validate_assignment=True)

    code: str = Field(
        ...,
        pattern=r"^[a-z_]+\.[a-z_]+$",
        description="Registry key, e.g. 'expenses.food'"
    )
    name: str = Field(
        ...,
        min_length=1,
        description="Account name within its category, e.g. 'food'"
    )
    label: str = Field(
        ...,
        min_length=1,
        description="Display name used in postings, e.g. 'Expense:food'"
    )
    category: AccountCategory
    balance: Decimal = Field(default=ZERO)

    @field_validator('balance', mode='before')
    @classmethod
    def quantize_balance(cls, v: Any) -> Decimal:
        return quantize_money(v)

    @property
    def is_debit_normal(self) -> bool:
        return self.category.is_debit_normal


# =============================================================================
# TRANSACTIONS
# =============================================================================

class Transaction(BaseModel):
    """
    A classified financial event, ready to be posted.

    Created by the parser (or from an LLM payload), immutable once built,
    and consumed exactly once by the ledger.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique transaction ID"
    )
    kind: TransactionKind
    amount: Decimal = Field(
        ...,
        gt=0,
        decimal_places=2,
        description="Positive amount of the transaction"
    )
    counterparty: Optional[str] = Field(
        default=None,
        max_length=200,
        description="Who the money went to or came from"
    )
    description: str = Field(
        ...,
        min_length=1,
        max_length=500,
        description="What the transaction was for"
    )
    date: dt.date = Field(default_factory=dt.date.today)

    # Template parameters
    category: Optional[ExpenseCategory] = Field(
        default=None,
        description="Expense bucket (expenses only)"
    )
    asset: Optional[AssetType] = Field(
        default=None,
        description="Asset account bought (asset purchases only)"
    )

    # Provenance
    source: TransactionSource = TransactionSource.RULES
    rule_name: Optional[str] = None

    @field_validator('amount', mode='before')
    @classmethod
    def quantize_amount(cls, v: Any) -> Decimal:
        return quantize_money(v)

    @field_validator('counterparty')
    @classmethod
    def empty_counterparty_is_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None

    @model_validator(mode='before')
    @classmethod
    def fill_template_defaults(cls, data: Any) -> Any:
        """Expenses always carry a category and asset purchases an asset."""
        if not isinstance(data, dict):
            return data
        kind = data.get("kind")
        kind = kind.value if isinstance(kind, TransactionKind) else kind
        if kind == TransactionKind.EXPENSE.value and data.get("category") is None:
            data = {**data, "category": ExpenseCategory.OTHER}
        if kind == TransactionKind.ASSET_PURCHASE.value and data.get("asset") is None:
            data = {**data, "asset": AssetType.OTHER}
        return data

    @model_validator(mode='after')
    def validate_asset(self) -> 'Transaction':
        if self.kind == TransactionKind.ASSET_PURCHASE and self.asset == AssetType.CASH:
            raise ValueError("Cash cannot be bought with cash")
        return self

    def to_payload(self) -> dict:
        """The `{kind, amount, counterparty, description, date}` shape callers render."""
        return {
            "id": str(self.id),
            "kind": self.kind.value,
            "amount": str(self.amount),
            "counterparty": self.counterparty,
            "description": self.description,
            "date": self.date.isoformat(),
            "category": self.category.value if self.category else None,
            "asset": self.asset.value if self.asset else None,
            "source": self.source.value,
        }


# =============================================================================
# JOURNAL
# =============================================================================

class Posting(BaseModel):
    """One debit or credit line against one account."""
    model_config = ConfigDict(frozen=True)

    account_code: str
    account_name: str
    account_category: AccountCategory
    debit: Decimal = Field(default=ZERO, ge=0)
    credit: Decimal = Field(default=ZERO, ge=0)

    @field_validator('debit', 'credit', mode='before')
    @classmethod
    def quantize_side(cls, v: Any) -> Decimal:
        return quantize_money(v)

    @model_validator(mode='after')
    def validate_one_side(self) -> 'Posting':
        if (self.debit > 0) == (self.credit > 0):
            raise ValueError(
                "Posting must have exactly one of debit or credit, not both or neither"
            )
        return self

    @property
    def is_debit(self) -> bool:
        return self.debit > 0

    @property
    def amount(self) -> Decimal:
        return self.debit if self.is_debit else self.credit

    def __str__(self) -> str:
        if self.is_debit:
            return f"Debit {self.account_name}: {self.debit:.2f}"
        return f"Credit {self.account_name}: {self.credit:.2f}"


class JournalEntry(BaseModel):
    """
    The paired postings recorded for one transaction.

    CRITICAL: Debits equal credits for every entry, always.
    Entries are append-only; they are never mutated after creation.
    """
    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4)
    transaction_id: UUID
    date: dt.date
    description: str
    postings: tuple[Posting, Posting]
    created_at: dt.datetime = Field(default_factory=dt.datetime.utcnow)

    @model_validator(mode='after')
    def validate_balanced(self) -> 'JournalEntry':
        if self.total_debits != self.total_credits:
            raise ValueError(
                f"Journal entry is unbalanced: debits {self.total_debits} "
                f"!= credits {self.total_credits}"
            )
        return self

    @property
    def total_debits(self) -> Decimal:
        return sum((p.debit for p in self.postings), ZERO)

    @property
    def total_credits(self) -> Decimal:
        return sum((p.credit for p in self.postings), ZERO)

    @property
    def debit_posting(self) -> Posting:
        return next(p for p in self.postings if p.is_debit)

    @property
    def credit_posting(self) -> Posting:
        return next(p for p in self.postings if not p.is_debit)


class LedgerTotals(BaseModel):
    """
    Category aggregates derived from account balances.

    These are never tracked separately; they are recomputed from the
    registry so they cannot drift from the accounts.

    The ledger has no closing entries, so current earnings
    (income - expenses) are part of equity on the balance sheet.
    """
    model_config = ConfigDict(frozen=True)

    total_assets: Decimal
    total_liabilities: Decimal
    contributed_equity: Decimal
    total_income: Decimal
    total_expenses: Decimal

    @property
    def net_income(self) -> Decimal:
        return self.total_income - self.total_expenses

    @property
    def total_equity(self) -> Decimal:
        return self.contributed_equity + self.net_income

    @property
    def identity_gap(self) -> Decimal:
        """Assets minus (liabilities + equity); zero when the books balance."""
        return self.total_assets - (self.total_liabilities + self.total_equity)

    @property
    def debit_normal_total(self) -> Decimal:
        return self.total_assets + self.total_expenses

    @property
    def credit_normal_total(self) -> Decimal:
        return self.total_liabilities + self.contributed_equity + self.total_income

    def is_balanced(self, tolerance: Decimal = MONEY_QUANTUM) -> bool:
        return abs(self.identity_gap) <= tolerance


# =============================================================================
# PARSE RESULTS
# =============================================================================

class ReportQuery(BaseModel):
    """A message asking for a report rather than recording a transaction."""
    model_config = ConfigDict(frozen=True)

    kind: ReportKind
    message: str


class NoMatch(BaseModel):
    """
    A message that is neither a transaction nor a report query.

    Not an error: it is answered with guidance text.
    """
    model_config = ConfigDict(frozen=True)

    message: str


class MalformedAmount(BaseModel):
    """A rule matched but its amount capture was not a usable number."""
    model_config = ConfigDict(frozen=True)

    rule_name: str
    raw_amount: str
    reason: str


ParseResult = Union[Transaction, ReportQuery, NoMatch]


class ParseReport(BaseModel):
    """
    The parser's full answer for one message.

    `malformed` lists every rule that matched textually but was skipped
    because its amount did not parse, in the order they were tried.
    """
    model_config = ConfigDict(frozen=True)

    result: ParseResult
    malformed: list[MalformedAmount] = Field(default_factory=list)

    @property
    def is_transaction(self) -> bool:
        return isinstance(self.result, Transaction)
