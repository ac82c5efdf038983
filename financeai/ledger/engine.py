"""
Ledger Engine

Applies a classified transaction to the account registry as one
balanced journal entry.

Every transaction kind has a fixed two-posting template:

    kind            debit               credit
    expense         Expense:{category}  Cash
    income          Cash                Income:other
    loan_received   Cash                Liability:loans
    loan_repayment  Liability:loans     Cash
    asset_purchase  Asset:{named}       Cash

CRITICAL: Posting is atomic. New balances are computed on the side,
the accounting identity is checked against them, and only then are
both balances written. A rejected transaction leaves the registry
exactly as it was.
"""

from collections.abc import Callable
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, ValidationError

from financeai.ledger.registry import (
    CASH,
    LOANS,
    OTHER_INCOME,
    AccountRegistry,
    LedgerError,
    asset_account_code,
    expense_account_code,
)
from financeai.models.ledger import (
    MONEY_QUANTUM,
    AssetType,
    ExpenseCategory,
    JournalEntry,
    Posting,
    Transaction,
    TransactionKind,
    quantize_money,
)


class InvariantViolation(LedgerError):
    """Posting would break (or the books already break) Assets = Liabilities + Equity."""
    code = "invariant_violation"

    def __init__(self, message: str, gap: Decimal = Decimal("0")):
        self.gap = gap
        super().__init__(message)


class OverRepaymentError(LedgerError):
    """A loan repayment larger than the outstanding loan balance."""
    code = "over_repayment"

    def __init__(self, outstanding: Decimal, amount: Decimal):
        self.outstanding = outstanding
        self.amount = amount
        super().__init__(
            f"Repayment of {amount:.2f} exceeds the outstanding loan balance "
            f"of {outstanding:.2f}"
        )


class DuplicateTransactionError(LedgerError):
    """A transaction can be consumed by the ledger only once."""
    code = "duplicate_transaction"


PostingTemplate = Callable[[Transaction], tuple[str, str]]

POSTING_TEMPLATES: dict[TransactionKind, PostingTemplate] = {
    TransactionKind.EXPENSE: lambda t: (
        expense_account_code(t.category or ExpenseCategory.OTHER), CASH,
    ),
    TransactionKind.INCOME: lambda t: (CASH, OTHER_INCOME),
    TransactionKind.LOAN_RECEIVED: lambda t: (CASH, LOANS),
    TransactionKind.LOAN_REPAYMENT: lambda t: (LOANS, CASH),
    TransactionKind.ASSET_PURCHASE: lambda t: (
        asset_account_code(t.asset or AssetType.OTHER), CASH,
    ),
}


class PreparedPosting(BaseModel):
    """A journal entry plus the balances it would leave behind."""
    model_config = ConfigDict(frozen=True)

    entry: JournalEntry
    new_balances: dict[str, Decimal]


class LedgerEngine:
    """
    Stateless posting logic.

    The engine is the only component that changes account balances.
    It holds policy (tolerance, over-repayment rule) but no books.
    """

    def __init__(
        self,
        tolerance: Decimal = MONEY_QUANTUM,
        allow_negative_liabilities: bool = False,
    ):
        self._tolerance = tolerance
        self._allow_negative_liabilities = allow_negative_liabilities

    @property
    def tolerance(self) -> Decimal:
        return self._tolerance

    def resolve_accounts(self, transaction: Transaction) -> tuple[str, str]:
        """(debit account code, credit account code) for a transaction."""
        return POSTING_TEMPLATES[transaction.kind](transaction)

    def build_entry(
        self,
        transaction: Transaction,
        registry: AccountRegistry,
    ) -> JournalEntry:
        debit_code, credit_code = self.resolve_accounts(transaction)
        debit_account = registry.get(debit_code)
        credit_account = registry.get(credit_code)

        try:
            return JournalEntry(
                transaction_id=transaction.id,
                date=transaction.date,
                description=transaction.description,
                postings=(
                    Posting(
                        account_code=debit_account.code,
                        account_name=debit_account.label,
                        account_category=debit_account.category,
                        debit=transaction.amount,
                    ),
                    Posting(
                        account_code=credit_account.code,
                        account_name=credit_account.label,
                        account_category=credit_account.category,
                        credit=transaction.amount,
                    ),
                ),
            )
        except ValidationError as e:
            raise InvariantViolation(f"Journal entry could not be balanced: {e}")

    def prepare(
        self,
        transaction: Transaction,
        registry: AccountRegistry,
    ) -> PreparedPosting:
        """
        Work out a posting without touching the registry.

        Raises:
            InvariantViolation: The books are out of balance before or
                would be out of balance after the posting
            OverRepaymentError: Repayment exceeds the outstanding loan
        """
        before = registry.totals()
        if not before.is_balanced(self._tolerance):
            raise InvariantViolation(
                f"Books are already out of balance by {before.identity_gap:.2f}; "
                "refusing to post",
                gap=before.identity_gap,
            )

        entry = self.build_entry(transaction, registry)

        new_balances: dict[str, Decimal] = {}
        for posting in entry.postings:
            account = registry.get(posting.account_code)
            current = new_balances.get(account.code, account.balance)
            delta = posting.debit - posting.credit
            if not account.is_debit_normal:
                delta = -delta
            try:
                new_balances[account.code] = quantize_money(current + delta)
            except ValueError:
                raise InvariantViolation(
                    f"Posting would take {account.label} beyond the largest balance "
                    "the books can hold to the cent"
                )

        if (
            transaction.kind == TransactionKind.LOAN_REPAYMENT
            and not self._allow_negative_liabilities
            and new_balances[LOANS] < 0
        ):
            raise OverRepaymentError(registry.balance(LOANS), transaction.amount)

        after = registry.totals(new_balances)
        if not after.is_balanced(self._tolerance):
            raise InvariantViolation(
                f"Posting would leave the books out of balance by {after.identity_gap:.2f}",
                gap=after.identity_gap,
            )

        return PreparedPosting(entry=entry, new_balances=new_balances)

    def commit(self, prepared: PreparedPosting, registry: AccountRegistry) -> JournalEntry:
        registry.commit_balances(prepared.new_balances)
        return prepared.entry

    def apply(self, transaction: Transaction, registry: AccountRegistry) -> JournalEntry:
        """Post a transaction: both balances change, or neither does."""
        return self.commit(self.prepare(transaction, registry), registry)
