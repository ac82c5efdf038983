"""Message parsing package."""

from financeai.parsing.llm_payload import (
    PayloadExtraction,
    TransactionPayload,
    extract_transaction_payload,
)
from financeai.parsing.parser import (
    REPORT_KEYWORDS,
    RULES,
    MalformedAmountError,
    PatternRule,
    RuleContext,
    TransactionParser,
    is_numeric,
    parse_amount,
)

__all__ = [
    "PayloadExtraction",
    "TransactionPayload",
    "extract_transaction_payload",
    "REPORT_KEYWORDS",
    "RULES",
    "MalformedAmountError",
    "PatternRule",
    "RuleContext",
    "TransactionParser",
    "is_numeric",
    "parse_amount",
]
