"""Tests for the transaction parser."""

import pytest
from datetime import date
from decimal import Decimal

from pydantic import ValidationError

from financeai.models.ledger import (
    AssetType,
    ExpenseCategory,
    NoMatch,
    ReportKind,
    ReportQuery,
    Transaction,
    TransactionKind,
)
from financeai.parsing import (
    RULES,
    MalformedAmountError,
    TransactionParser,
    is_numeric,
    parse_amount,
)


@pytest.fixture
def parser():
    return TransactionParser(today=lambda: date(2024, 5, 1))


class TestAmountParsing:
    """Tests for amount captures."""

    def test_plain_and_formatted_amounts(self):
        """Test integers, decimals, currency signs and separators."""
        assert parse_amount("25") == Decimal("25.00")
        assert parse_amount("$1,200.50") == Decimal("1200.50")
        assert parse_amount("99.999") == Decimal("100.00")

    def test_malformed_amounts(self):
        """Test that words, zero, negatives, non-finite and oversized values are malformed."""
        for raw in ("laptop", "", "0", "-5", "nan", "inf", "1.2.3", "1e30", "9" * 29):
            with pytest.raises(MalformedAmountError):
                parse_amount(raw)

    def test_malformed_amount_is_value_error(self):
        """Test that callers can treat it as a ValueError."""
        with pytest.raises(ValueError):
            parse_amount("abc")

    def test_is_numeric(self):
        """Test the numeric check used by the two-shape rule."""
        assert is_numeric("5")
        assert is_numeric("$1,000")
        assert not is_numeric("John")
        assert not is_numeric("")
        assert is_numeric("1e40")
        assert not is_numeric("nan")


class TestTransactionRules:
    """Tests for each rule in priority order."""

    def test_rules_are_immutable_data(self):
        """Test that rules are frozen models and a parser can run a subset."""
        with pytest.raises(ValidationError):
            RULES[0].name = "renamed"
        parser = TransactionParser(rules=RULES[:1])
        assert isinstance(parser.parse("received 100 from client"), NoMatch)
        assert parser.parse("paid 25 for lunch").rule_name == "expense_paid_for"

    def test_rule_order_is_fixed(self):
        """Test the rule priority order."""
        assert [rule.name for rule in RULES] == [
            "expense_paid_for",
            "expense_paid_to",
            "income_received_from",
            "income_gave_me",
            "loan_received",
            "loan_repayment",
            "asset_purchase",
        ]

    def test_paid_for_lunch(self, parser):
        """Test the basic expense sentence."""
        tx = parser.parse("paid 25 for lunch")
        assert isinstance(tx, Transaction)
        assert tx.kind == TransactionKind.EXPENSE
        assert tx.amount == Decimal("25.00")
        assert tx.category == ExpenseCategory.FOOD
        assert tx.description == "lunch"
        assert tx.date == date(2024, 5, 1)
        assert tx.rule_name == "expense_paid_for"

    def test_spent_on(self, parser):
        """Test 'spent ... on ...' with currency formatting."""
        tx = parser.parse("I spent $1,250.75 on office rent.")
        assert tx.kind == TransactionKind.EXPENSE
        assert tx.amount == Decimal("1250.75")
        assert tx.description == "office rent"
        assert tx.category == ExpenseCategory.RENT

    def test_sent_to(self, parser):
        """Test the payee form of an expense."""
        tx = parser.parse("sent 40 to the electricity company")
        assert tx.kind == TransactionKind.EXPENSE
        assert tx.rule_name == "expense_paid_to"
        assert tx.counterparty == "the electricity company"
        assert tx.category == ExpenseCategory.UTILITIES

    def test_received_from(self, parser):
        """Test income with a counterparty."""
        tx = parser.parse("received 100 from client")
        assert tx.kind == TransactionKind.INCOME
        assert tx.amount == Decimal("100.00")
        assert tx.counterparty == "client"

    def test_received_without_counterparty(self, parser):
        """Test that the counterparty may be absent."""
        tx = parser.parse("earned 300")
        assert tx.kind == TransactionKind.INCOME
        assert tx.counterparty is None
        assert tx.description == "Income"

    def test_borrowed_from(self, parser):
        """Test a loan with a named lender."""
        tx = parser.parse("borrowed 500 from bank")
        assert tx.kind == TransactionKind.LOAN_RECEIVED
        assert tx.amount == Decimal("500.00")
        assert tx.counterparty == "bank"

    def test_loan_defaults_to_bank(self, parser):
        """Test the default lender."""
        tx = parser.parse("took a loan of 2000")
        assert tx.kind == TransactionKind.LOAN_RECEIVED
        assert tx.counterparty == "Bank"

    def test_default_lender_is_configurable(self):
        """Test a different default lender."""
        parser = TransactionParser(default_loan_counterparty="Credit Union")
        assert parser.parse("borrowed 10").counterparty == "Credit Union"

    def test_repaid_to(self, parser):
        """Test a loan repayment."""
        tx = parser.parse("repaid 200 to bank")
        assert tx.kind == TransactionKind.LOAN_REPAYMENT
        assert tx.amount == Decimal("200.00")
        assert tx.counterparty == "bank"

    def test_paid_back_defaults_to_bank(self, parser):
        """Test 'paid back' without a lender."""
        tx = parser.parse("paid back 50")
        assert tx.kind == TransactionKind.LOAN_REPAYMENT
        assert tx.counterparty == "Bank"

    def test_asset_purchase(self, parser):
        """Test an asset purchase after the expense rule is skipped."""
        tx = parser.parse("bought a delivery van for 15000")
        assert tx.kind == TransactionKind.ASSET_PURCHASE
        assert tx.asset == AssetType.VEHICLES
        assert tx.description == "Purchase of delivery van"


class TestTwoShapeIncomeRule:
    """Tests for '<name> gave me <amount>' and its numeric-first shape."""

    def test_name_first(self, parser):
        """Test the usual shape: name, then amount."""
        tx = parser.parse("John gave me 50")
        assert tx.kind == TransactionKind.INCOME
        assert tx.rule_name == "income_gave_me"
        assert tx.counterparty == "John"
        assert tx.amount == Decimal("50.00")

    def test_numeric_first_swaps_groups(self, parser):
        """Test that a numeric first capture is read as the amount."""
        tx = parser.parse("5 gave me 10")
        assert tx.rule_name == "income_gave_me"
        assert tx.amount == Decimal("5.00")
        assert tx.counterparty == "10"

    def test_name_with_word_amount_is_malformed(self, parser):
        """Test that a non-numeric second capture falls through."""
        report = parser.parse_detailed("Sara paid me twice")
        assert not report.is_transaction
        assert [m.rule_name for m in report.malformed] == ["income_gave_me"]


class TestFirstMatchAndFallthrough:
    """Tests for dispatch order and malformed-amount fallthrough."""

    def test_first_match_wins(self, parser):
        """Test that 'bought X for Y' with a numeric X is an expense, not an asset."""
        tx = parser.parse("bought 3 for snacks")
        assert tx.kind == TransactionKind.EXPENSE
        assert tx.rule_name == "expense_paid_for"

    def test_malformed_amount_falls_through_to_later_rule(self, parser):
        """Test 'bought laptop for 1200': rule 1 skipped, asset rule matches."""
        report = parser.parse_detailed("bought laptop for 1200")
        assert report.is_transaction
        tx = report.result
        assert tx.kind == TransactionKind.ASSET_PURCHASE
        assert tx.amount == Decimal("1200.00")
        assert tx.asset == AssetType.COMPUTERS
        assert report.malformed[0].rule_name == "expense_paid_for"
        assert report.malformed[0].raw_amount == "laptop"

    def test_zero_amount_falls_through(self, parser):
        """Test that a zero amount is treated like a malformed capture."""
        report = parser.parse_detailed("paid 0 for lunch")
        assert isinstance(report.result, NoMatch)
        assert [m.rule_name for m in report.malformed] == [
            "expense_paid_for",
            "expense_paid_to",
        ]

    def test_oversized_amount_falls_through(self, parser):
        """Test that an amount too large to hold to the cent is skipped, not raised."""
        for message in ("paid 1e30 for lunch", "paid " + "9" * 29 + " for lunch"):
            report = parser.parse_detailed(message)
            assert isinstance(report.result, NoMatch)
            assert [m.rule_name for m in report.malformed] == [
                "expense_paid_for",
                "expense_paid_to",
            ]

    def test_oversized_numeric_first_income_is_malformed(self, parser):
        """Test that '1e40 gave me 10' reads 1e40 as the amount and skips the rule."""
        report = parser.parse_detailed("1e40 gave me 10")
        assert isinstance(report.result, NoMatch)
        assert [m.rule_name for m in report.malformed] == ["income_gave_me"]
        assert report.malformed[0].raw_amount == "1e40"

    def test_malformed_then_report_keyword(self, parser):
        """Test that skipped rules still lead to the report check."""
        report = parser.parse_detailed("received lots of cash")
        assert isinstance(report.result, ReportQuery)
        assert report.result.kind == ReportKind.CASH_BALANCE
        assert report.malformed[0].rule_name == "income_received_from"


class TestReportQueries:
    """Tests for report keyword matching."""

    @pytest.mark.parametrize("message,kind", [
        ("show me the balance sheet", ReportKind.BALANCE_SHEET),
        ("Income Statement please", ReportKind.INCOME_STATEMENT),
        ("am I making a profit?", ReportKind.INCOME_STATEMENT),
        ("what's my loss this month", ReportKind.INCOME_STATEMENT),
        ("any losses this year?", ReportKind.INCOME_STATEMENT),
        ("show my profits", ReportKind.INCOME_STATEMENT),
        ("run a trial balance", ReportKind.TRIAL_BALANCE),
        ("what's my current balance?", ReportKind.CASH_BALANCE),
        ("how much cash do I have", ReportKind.CASH_BALANCE),
    ])
    def test_report_keywords(self, parser, message, kind):
        """Test each report keyword."""
        result = parser.parse(message)
        assert isinstance(result, ReportQuery)
        assert result.kind == kind

    def test_transaction_beats_report_keyword(self, parser):
        """Test that rules are tried before report keywords."""
        result = parser.parse("received 100 cash from client")
        assert isinstance(result, Transaction)

    def test_keywords_match_whole_words(self, parser):
        """Test that a keyword inside another word is not a report request."""
        for message in ("I want a gloss finish", "bring cashew nuts", "unbalanced diet"):
            assert isinstance(parser.parse(message), NoMatch), message

    def test_cash_payment_without_amount_is_a_cash_query(self, parser):
        """Test that 'paid cash' with no number skips both expense rules and asks for cash."""
        report = parser.parse_detailed("I paid cash for lunch")
        assert isinstance(report.result, ReportQuery)
        assert report.result.kind == ReportKind.CASH_BALANCE
        assert [m.rule_name for m in report.malformed] == [
            "expense_paid_for",
            "expense_paid_to",
        ]


class TestNoMatch:
    """Tests for unmatched messages."""

    def test_no_match(self, parser):
        """Test plain chatter."""
        result = parser.parse("hello there")
        assert isinstance(result, NoMatch)
        assert result.message == "hello there"

    def test_empty_message(self, parser):
        """Test that empty input is NoMatch, not an error."""
        assert isinstance(parser.parse(""), NoMatch)
        assert isinstance(parser.parse(None), NoMatch)
