"""
Tests for the ledger: registry, engine and session-owned books.

The accounting identity and the trial balance are checked after every
posting in the property-style tests.
"""

import threading

import pytest
from decimal import Decimal

from financeai.config import LedgerSettings
from financeai.ledger import (
    CAPITAL,
    CASH,
    CHART_OF_ACCOUNTS,
    LOANS,
    OTHER_INCOME,
    AccountRegistry,
    DuplicateTransactionError,
    InvariantViolation,
    Ledger,
    LedgerEngine,
    LedgerError,
    OverRepaymentError,
    UnknownAccountError,
)
from financeai.models.ledger import (
    AccountCategory,
    AssetType,
    Transaction,
    TransactionKind,
)
from financeai.parsing import TransactionParser
from financeai.services.storage import JournalStorageInterface, StorageError


class FailingJournalStorage(JournalStorageInterface):
    """Journal that refuses every entry."""

    def append_entry(self, entry):
        raise StorageError("journal unavailable")

    def get_entry(self, entry_id):
        return None

    def list_entries(self, limit=None, offset=0):
        return []

    def count(self):
        return 0


@pytest.fixture
def ledger():
    return Ledger.from_settings(LedgerSettings(starting_capital=Decimal("10000")))


@pytest.fixture
def parser():
    return TransactionParser()


def post_text(ledger, parser, message):
    return ledger.apply(parser.parse(message))


class TestAccountRegistry:
    """Tests for the chart of accounts."""

    def test_open_books_starting_capital(self):
        """Test that capital is booked to cash and equity."""
        registry = AccountRegistry.open(Decimal("2500"))
        assert registry.balance(CASH) == Decimal("2500.00")
        assert registry.balance(CAPITAL) == Decimal("2500.00")
        assert registry.totals().is_balanced()
        assert len(registry) == len(CHART_OF_ACCOUNTS)

    def test_open_rejects_negative_capital(self):
        """Test that negative starting capital is refused."""
        with pytest.raises(ValueError):
            AccountRegistry.open(Decimal("-1"))

    def test_unknown_account(self):
        """Test lookups of accounts outside the chart."""
        registry = AccountRegistry.open()
        assert "expenses.travel" not in registry
        with pytest.raises(UnknownAccountError) as exc_info:
            registry.get("expenses.travel")
        assert isinstance(exc_info.value, LedgerError)
        assert isinstance(exc_info.value, KeyError)
        assert "expenses.travel" in str(exc_info.value)

    def test_accounts_by_category(self):
        """Test that category listing keeps chart order."""
        registry = AccountRegistry.open()
        names = [a.name for a in registry.accounts(AccountCategory.LIABILITY)]
        assert names == ["loans", "accounts_payable"]

    def test_commit_balances_checks_every_code_first(self):
        """Test that a bad code in a batch changes nothing."""
        registry = AccountRegistry.open(Decimal("100"))
        before = registry.snapshot()
        with pytest.raises(UnknownAccountError):
            registry.commit_balances({CASH: Decimal("0"), "assets.gold": Decimal("5")})
        assert registry.snapshot() == before

    def test_duplicate_codes_rejected(self):
        """Test that the chart cannot hold the same code twice."""
        account = AccountRegistry.open().get(CASH)
        with pytest.raises(ValueError):
            AccountRegistry([account, account])


class TestPostingTemplates:
    """Tests for each transaction kind (the testable properties)."""

    def test_expense(self, ledger, parser):
        """Test 'paid 25 for lunch': debit Expense:food, credit Cash."""
        entry = post_text(ledger, parser, "paid 25 for lunch")
        assert entry.debit_posting.account_name == "Expense:food"
        assert entry.debit_posting.debit == Decimal("25.00")
        assert entry.credit_posting.account_name == "Cash"
        assert entry.credit_posting.credit == Decimal("25.00")
        assert ledger.cash_balance() == Decimal("9975.00")
        assert ledger.registry.balance("expenses.food") == Decimal("25.00")

    def test_income(self, ledger, parser):
        """Test 'received 100 from client': cash and income both rise."""
        before = ledger.totals()
        post_text(ledger, parser, "received 100 from client")
        after = ledger.totals()
        assert ledger.cash_balance() == Decimal("10100.00")
        assert after.total_income - before.total_income == Decimal("100.00")
        assert ledger.registry.balance(OTHER_INCOME) == Decimal("100.00")

    def test_loan_received(self, ledger, parser):
        """Test 'borrowed 500 from bank': cash and liabilities both rise."""
        post_text(ledger, parser, "borrowed 500 from bank")
        assert ledger.cash_balance() == Decimal("10500.00")
        assert ledger.totals().total_liabilities == Decimal("500.00")

    def test_loan_repayment(self, ledger, parser):
        """Test 'repaid 200 to bank': cash and liabilities both fall."""
        post_text(ledger, parser, "borrowed 500 from bank")
        post_text(ledger, parser, "repaid 200 to bank")
        assert ledger.cash_balance() == Decimal("10300.00")
        assert ledger.registry.balance(LOANS) == Decimal("300.00")

    def test_asset_purchase(self, ledger, parser):
        """Test that buying an asset moves value from cash to the asset account."""
        entry = post_text(ledger, parser, "bought laptop for 1200")
        assert entry.debit_posting.account_code == "assets.computers"
        assert ledger.registry.balance("assets.computers") == Decimal("1200.00")
        assert ledger.cash_balance() == Decimal("8800.00")
        assert ledger.totals().total_assets == Decimal("10000.00")

    def test_cash_may_go_negative(self, ledger):
        """Test that spending beyond cash is recorded (overdraft)."""
        ledger.apply(Transaction(kind="expense", amount="12000", description="rent"))
        assert ledger.cash_balance() == Decimal("-2000.00")
        assert ledger.totals().is_balanced()

    def test_resolve_accounts(self):
        """Test the (debit, credit) codes for every kind."""
        engine = LedgerEngine()
        cases = {
            TransactionKind.EXPENSE: ("expenses.other", CASH),
            TransactionKind.INCOME: (CASH, OTHER_INCOME),
            TransactionKind.LOAN_RECEIVED: (CASH, LOANS),
            TransactionKind.LOAN_REPAYMENT: (LOANS, CASH),
            TransactionKind.ASSET_PURCHASE: ("assets.other", CASH),
        }
        for kind, expected in cases.items():
            tx = Transaction(kind=kind, amount="1", description="x")
            assert engine.resolve_accounts(tx) == expected


class TestLedgerInvariants:
    """Property-style checks over sequences of postings."""

    MESSAGES = [
        "paid 25 for lunch",
        "received 100 from client",
        "borrowed 500 from bank",
        "spent 80.10 on taxi",
        "bought a desk for 349.99",
        "repaid 200 to bank",
        "John gave me 75.5",
        "paid 1,200 for rent",
        "purchased 12.345 for printer ink",
        "took a loan of 1000",
        "sent 60 to the water company",
    ]

    def test_every_entry_balances(self, ledger, parser):
        """Test that debits equal credits for every journal entry."""
        for message in self.MESSAGES:
            entry = post_text(ledger, parser, message)
            assert entry.total_debits == entry.total_credits

    def test_identity_holds_after_every_apply(self, ledger, parser):
        """Test Assets = Liabilities + Equity after each posting."""
        for message in self.MESSAGES:
            post_text(ledger, parser, message)
            totals = ledger.totals()
            assert abs(
                totals.total_assets - (totals.total_liabilities + totals.total_equity)
            ) <= Decimal("0.01")

    def test_trial_balance_holds(self, ledger, parser):
        """Test that debit-normal and credit-normal totals match."""
        for message in self.MESSAGES:
            post_text(ledger, parser, message)
        totals = ledger.totals()
        assert abs(totals.debit_normal_total - totals.credit_normal_total) <= Decimal("0.01")

    def test_aggregates_equal_account_sums(self, ledger, parser):
        """Test that derived totals are the sums of account balances."""
        for message in self.MESSAGES:
            post_text(ledger, parser, message)
        registry = ledger.registry
        expected_assets = sum(a.balance for a in registry.accounts(AccountCategory.ASSET))
        assert ledger.totals().total_assets == expected_assets

    def test_journal_keeps_every_entry(self, ledger, parser):
        """Test that the journal is append-only and ordered."""
        entries = [post_text(ledger, parser, m) for m in self.MESSAGES]
        assert [e.id for e in ledger.entries()] == [e.id for e in entries]
        assert ledger.journal.count() == len(self.MESSAGES)


class TestAtomicity:
    """Tests that rejected transactions leave the books untouched."""

    def test_out_of_balance_books_refuse_postings(self):
        """Test that a corrupted registry is detected before posting."""
        registry = AccountRegistry.open(Decimal("1000"))
        registry.get(CASH).balance = Decimal("900")
        ledger = Ledger(registry=registry)
        before = ledger.snapshot()

        with pytest.raises(InvariantViolation) as exc_info:
            ledger.apply(Transaction(kind="income", amount="10", description="x"))

        assert exc_info.value.gap == Decimal("-100.00")
        assert ledger.snapshot() == before
        assert ledger.journal.count() == 0

    def test_missing_account_changes_nothing(self):
        """Test a chart without the target account."""
        full = AccountRegistry.open(Decimal("1000"))
        registry = AccountRegistry(a for a in full if a.code != "expenses.food")
        ledger = Ledger(registry=registry)
        before = ledger.snapshot()

        with pytest.raises(UnknownAccountError):
            ledger.apply(Transaction(
                kind="expense", amount="10", description="lunch", category="food",
            ))

        assert ledger.snapshot() == before
        assert ledger.journal.count() == 0

    def test_over_repayment_rejected(self, ledger):
        """Test that repaying more than is owed is refused."""
        ledger.apply(Transaction(kind="loan_received", amount="100", description="Loan"))
        before = ledger.snapshot()

        with pytest.raises(OverRepaymentError) as exc_info:
            ledger.apply(Transaction(kind="loan_repayment", amount="150", description="Repay"))

        assert exc_info.value.outstanding == Decimal("100.00")
        assert ledger.snapshot() == before
        assert ledger.journal.count() == 1

    def test_over_repayment_allowed_by_policy(self):
        """Test negative liabilities when explicitly allowed."""
        ledger = Ledger.from_settings(LedgerSettings(
            starting_capital=Decimal("1000"),
            allow_negative_liabilities=True,
        ))
        ledger.apply(Transaction(kind="loan_repayment", amount="150", description="Repay"))
        assert ledger.registry.balance(LOANS) == Decimal("-150.00")
        assert ledger.totals().is_balanced()

    def test_duplicate_transaction_rejected(self, ledger):
        """Test that a transaction is consumed exactly once."""
        tx = Transaction(kind="income", amount="10", description="x")
        ledger.apply(tx)
        with pytest.raises(DuplicateTransactionError):
            ledger.apply(tx)
        assert ledger.cash_balance() == Decimal("10010.00")
        assert ledger.has_applied(tx.id)

    def test_balance_beyond_cent_precision_rejected(self):
        """Test that a balance too large to hold to the cent is refused before anything is written."""
        ledger = Ledger()
        ledger.apply(Transaction(kind="income", amount="5e25", description="windfall"))
        before = ledger.snapshot()
        second = Transaction(kind="income", amount="5e25", description="windfall")

        with pytest.raises(InvariantViolation):
            ledger.apply(second)

        assert ledger.snapshot() == before
        assert ledger.journal.count() == 1
        assert not ledger.has_applied(second.id)

    def test_journal_failure_rolls_back_balances(self):
        """Test that balances are restored when the journal refuses the entry."""
        ledger = Ledger(registry=AccountRegistry.open(Decimal("100")), journal=FailingJournalStorage())
        before = ledger.snapshot()
        tx = Transaction(kind="expense", amount="25", description="lunch")

        with pytest.raises(StorageError):
            ledger.apply(tx)

        assert ledger.snapshot() == before
        assert ledger.totals().is_balanced()
        assert not ledger.has_applied(tx.id)

    def test_prepare_does_not_touch_registry(self):
        """Test that preparing a posting is side-effect free."""
        registry = AccountRegistry.open(Decimal("50"))
        before = registry.snapshot()
        prepared = LedgerEngine().prepare(
            Transaction(kind="asset_purchase", amount="20", description="Desk", asset=AssetType.FURNITURE),
            registry,
        )
        assert registry.snapshot() == before
        assert prepared.new_balances == {
            "assets.furniture": Decimal("20.00"),
            CASH: Decimal("30.00"),
        }


class TestLedger:
    """Tests for the session-owned books."""

    def test_post_reports_cash_movement(self, ledger):
        """Test the balance summary for the transaction card."""
        _, summary = ledger.post(Transaction(kind="expense", amount="25", description="lunch"))
        assert summary.previous_balance == Decimal("10000.00")
        assert summary.new_balance == Decimal("9975.00")
        assert summary.change == Decimal("-25.00")

    def test_default_ledger_opens_empty(self):
        """Test a ledger without starting capital."""
        ledger = Ledger()
        assert ledger.cash_balance() == Decimal("0.00")
        assert ledger.totals().is_balanced()

    def test_concurrent_postings_are_serialized(self, ledger):
        """Test that parallel postings never break the identity."""
        def worker():
            for _ in range(50):
                ledger.apply(Transaction(kind="expense", amount="1", description="coffee"))
                ledger.apply(Transaction(kind="income", amount="1", description="tip"))

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert ledger.cash_balance() == Decimal("10000.00")
        assert ledger.totals().is_balanced()
        assert ledger.journal.count() == 400
