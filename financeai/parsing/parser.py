"""
Transaction Parser

Turns a chat message into a Transaction candidate, a ReportQuery, or
NoMatch.

DESIGN DECISION: Rules are data. Each rule is a pattern, the kind of
transaction it produces, and an extraction function. One dispatch loop
tries them in a fixed priority order and the FIRST rule that matches
wins, even if a later rule would also match. Reordering RULES changes
how ambiguous sentences are booked, so the order is part of the contract.

A rule whose amount capture does not parse is skipped and the loop moves
on to the next rule (it does not stop at NoMatch).

Only after every rule has been tried do we look for report keywords.
"""

import re
from collections.abc import Callable, Sequence
from functools import lru_cache
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Optional

import structlog
from pydantic import BaseModel, ConfigDict, Field

from financeai.classifier import AssetClassifier, CategoryClassifier
from financeai.models.ledger import (
    MalformedAmount,
    NoMatch,
    ParseReport,
    ParseResult,
    ReportKind,
    ReportQuery,
    Transaction,
    TransactionKind,
    quantize_money,
)


logger = structlog.get_logger(__name__)


class MalformedAmountError(ValueError):
    """A captured amount is not a positive, finite number."""

    def __init__(self, raw_amount: str, reason: str):
        self.raw_amount = raw_amount
        self.reason = reason
        super().__init__(f"Malformed amount {raw_amount!r}: {reason}")


def parse_amount(raw: str) -> Decimal:
    """
    Parse a captured amount like `25`, `$1,200.50` or `99.999`.

    Returns a two-place Decimal. Raises MalformedAmountError for
    anything that is not a positive finite number.
    """
    cleaned = (raw or "").strip().lstrip("$").replace(",", "")
    if not cleaned:
        raise MalformedAmountError(raw, "empty")
    try:
        amount = quantize_money(cleaned)
    except ValueError:
        raise MalformedAmountError(raw, "not a number")
    if amount <= 0:
        raise MalformedAmountError(raw, "amount must be positive")
    return amount


def is_numeric(raw: str) -> bool:
    """Does the capture read as a number at all (sign and size ignored)?"""
    cleaned = (raw or "").strip().lstrip("$").replace(",", "")
    try:
        return Decimal(cleaned).is_finite()
    except InvalidOperation:
        return False


def _clean(text: Optional[str], limit: int) -> str:
    """Trim whitespace and trailing sentence punctuation."""
    if not text:
        return ""
    cleaned = text.strip().rstrip(".!?;,").strip()
    return cleaned[:limit]


# =============================================================================
# RULES
# =============================================================================

class RuleContext(BaseModel):
    """What extraction functions may consult besides the match itself."""
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    category_classifier: CategoryClassifier
    asset_classifier: AssetClassifier
    default_loan_counterparty: str = "Bank"


Extractor = Callable[[re.Match, RuleContext], dict]


class PatternRule(BaseModel):
    """One classification rule: pattern, resulting kind, extraction function."""
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    kind: TransactionKind
    pattern: re.Pattern
    extract: Extractor


# An amount capture is deliberately permissive so that words and signs are
# captured too; parse_amount decides whether the rule really applies.
_AMOUNT = r"[\w.,$-]+"


def _extract_expense_for(match: re.Match, ctx: RuleContext) -> dict:
    amount = parse_amount(match.group("amount"))
    description = _clean(match.group("description"), 500) or "Expense"
    return {
        "amount": amount,
        "description": description,
        "category": ctx.category_classifier.classify(description),
    }


def _extract_expense_to(match: re.Match, ctx: RuleContext) -> dict:
    amount = parse_amount(match.group("amount"))
    payee = _clean(match.group("description"), 500) or "Expense"
    return {
        "amount": amount,
        "counterparty": payee[:200],
        "description": payee,
        "category": ctx.category_classifier.classify(payee),
    }


def _extract_income_from(match: re.Match, ctx: RuleContext) -> dict:
    amount = parse_amount(match.group("amount"))
    payer = _clean(match.group("counterparty"), 200)
    return {
        "amount": amount,
        "counterparty": payer or None,
        "description": f"Income from {payer}" if payer else "Income",
    }


def _extract_income_gave_me(match: re.Match, ctx: RuleContext) -> dict:
    # Two shapes share one pattern: "<name> gave me <amount>" and
    # "<amount> ... me <name>". If the first capture reads as a number it
    # is the amount, otherwise it is the counterparty.
    first, second = match.group(1), match.group(2)
    if is_numeric(first):
        raw_amount, payer = first, second
    else:
        payer, raw_amount = first, second
    amount = parse_amount(raw_amount)
    payer = _clean(payer, 200)
    return {
        "amount": amount,
        "counterparty": payer or None,
        "description": f"Income from {payer}" if payer else "Income",
    }


def _extract_loan_received(match: re.Match, ctx: RuleContext) -> dict:
    amount = parse_amount(match.group("amount"))
    lender = _clean(match.group("counterparty"), 200) or ctx.default_loan_counterparty
    return {
        "amount": amount,
        "counterparty": lender,
        "description": f"Loan from {lender}",
    }


def _extract_loan_repayment(match: re.Match, ctx: RuleContext) -> dict:
    amount = parse_amount(match.group("amount"))
    lender = _clean(match.group("counterparty"), 200) or ctx.default_loan_counterparty
    return {
        "amount": amount,
        "counterparty": lender,
        "description": f"Loan repayment to {lender}",
    }


def _extract_asset_purchase(match: re.Match, ctx: RuleContext) -> dict:
    amount = parse_amount(match.group("amount"))
    asset_name = _clean(match.group("asset"), 480) or "asset"
    return {
        "amount": amount,
        "description": f"Purchase of {asset_name}",
        "asset": ctx.asset_classifier.classify(asset_name),
    }


def _rule(name: str, kind: TransactionKind, pattern: str, extract: Extractor) -> PatternRule:
    return PatternRule(
        name=name,
        kind=kind,
        pattern=re.compile(pattern, re.IGNORECASE),
        extract=extract,
    )


RULES: tuple[PatternRule, ...] = (
    _rule(
        "expense_paid_for",
        TransactionKind.EXPENSE,
        rf"\b(?:paid|spent|bought|purchased)\s+(?P<amount>{_AMOUNT})\s+(?:for|on)\s+(?P<description>.+)",
        _extract_expense_for,
    ),
    _rule(
        "expense_paid_to",
        TransactionKind.EXPENSE,
        rf"\b(?:paid|gave|sent)\s+(?P<amount>{_AMOUNT})\s+(?:to|for)\s+(?P<description>.+)",
        _extract_expense_to,
    ),
    _rule(
        "income_received_from",
        TransactionKind.INCOME,
        rf"\b(?:received|got|earned|collected)\s+(?P<amount>{_AMOUNT})(?:\s+from\s+(?P<counterparty>.+))?",
        _extract_income_from,
    ),
    _rule(
        "income_gave_me",
        TransactionKind.INCOME,
        rf"(\S+)\s+(?:gave|paid|sent)\s+me\s+({_AMOUNT})",
        _extract_income_gave_me,
    ),
    _rule(
        "loan_received",
        TransactionKind.LOAN_RECEIVED,
        rf"\b(?:borrowed|took\s+(?:a\s+)?loan(?:\s+of)?)\s+(?P<amount>{_AMOUNT})(?:\s+from\s+(?P<counterparty>.+))?",
        _extract_loan_received,
    ),
    _rule(
        "loan_repayment",
        TransactionKind.LOAN_REPAYMENT,
        rf"\b(?:repaid|paid\s+back)\s+(?P<amount>{_AMOUNT})(?:\s+to\s+(?P<counterparty>.+))?",
        _extract_loan_repayment,
    ),
    _rule(
        "asset_purchase",
        TransactionKind.ASSET_PURCHASE,
        rf"\b(?:bought|purchased)\s+(?:an?\s+|the\s+)?(?P<asset>.+?)\s+for\s+(?P<amount>{_AMOUNT})",
        _extract_asset_purchase,
    ),
)


# Checked in order, only after every rule has failed. A keyword matches
# whole words, plural allowed: "losses" is a loss, "gloss" is not.
REPORT_KEYWORDS: tuple[tuple[str, ReportKind], ...] = (
    ("balance sheet", ReportKind.BALANCE_SHEET),
    ("income statement", ReportKind.INCOME_STATEMENT),
    ("profit", ReportKind.INCOME_STATEMENT),
    ("loss", ReportKind.INCOME_STATEMENT),
    ("trial balance", ReportKind.TRIAL_BALANCE),
    ("balance", ReportKind.CASH_BALANCE),
    ("cash", ReportKind.CASH_BALANCE),
)


@lru_cache(maxsize=None)
def _keyword_pattern(keyword: str) -> re.Pattern:
    return re.compile(rf"\b{re.escape(keyword)}(?:e?s)?\b", re.IGNORECASE)


# =============================================================================
# PARSER
# =============================================================================

class TransactionParser(BaseModel):
    """
    Deterministic, best-effort rule matcher.

    The parser holds no per-message state, so one instance can be
    shared by every session.
    """
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    category_classifier: CategoryClassifier = Field(default_factory=CategoryClassifier)
    asset_classifier: AssetClassifier = Field(default_factory=AssetClassifier)
    default_loan_counterparty: str = "Bank"
    rules: Sequence[PatternRule] = RULES
    report_keywords: Sequence[tuple[str, ReportKind]] = REPORT_KEYWORDS
    today: Callable[[], date] = date.today

    @property
    def context(self) -> RuleContext:
        return RuleContext(
            category_classifier=self.category_classifier,
            asset_classifier=self.asset_classifier,
            default_loan_counterparty=self.default_loan_counterparty,
        )

    def parse(self, message: str) -> ParseResult:
        """Classify a message. See parse_detailed for skipped rules."""
        return self.parse_detailed(message).result

    def parse_detailed(self, message: str) -> ParseReport:
        text = (message or "").strip()
        ctx = self.context
        malformed: list[MalformedAmount] = []

        for rule in self.rules:
            match = rule.pattern.search(text)
            if match is None:
                continue
            try:
                fields = rule.extract(match, ctx)
            except MalformedAmountError as e:
                logger.debug(
                    "rule_skipped_malformed_amount",
                    rule=rule.name,
                    raw_amount=e.raw_amount,
                    reason=e.reason,
                )
                malformed.append(MalformedAmount(
                    rule_name=rule.name,
                    raw_amount=e.raw_amount,
                    reason=e.reason,
                ))
                continue

            transaction = Transaction(
                kind=rule.kind,
                date=self.today(),
                rule_name=rule.name,
                **fields,
            )
            logger.debug(
                "rule_matched",
                rule=rule.name,
                kind=transaction.kind.value,
                amount=str(transaction.amount),
            )
            return ParseReport(result=transaction, malformed=malformed)

        report_kind = self.match_report_kind(text)
        if report_kind is not None:
            return ParseReport(
                result=ReportQuery(kind=report_kind, message=text),
                malformed=malformed,
            )

        return ParseReport(result=NoMatch(message=text), malformed=malformed)

    def match_report_kind(self, text: str) -> Optional[ReportKind]:
        for keyword, kind in self.report_keywords:
            if _keyword_pattern(keyword).search(text):
                return kind
        return None
