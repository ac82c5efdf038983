"""
Transaction Payloads in Assistant Replies

The hosted LLM that writes free-form replies may embed ONE transaction
in its answer as a fenced block:

    ```transaction
    {"kind": "expense", "amount": "25", "description": "lunch", ...}
    ```

This module turns that block into the same Transaction shape the rule
parser produces, so the ledger treats both paths identically.

CRITICAL: A bad payload is never posted. Invalid JSON or fields
yield None; the caller decides how to report it.
"""

import json
import re
from datetime import date
from decimal import Decimal
from typing import Any, Optional

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from financeai.classifier import AssetClassifier, CategoryClassifier
from financeai.models.ledger import (
    AssetType,
    ExpenseCategory,
    Transaction,
    TransactionKind,
    TransactionSource,
    quantize_money,
)


logger = structlog.get_logger(__name__)


TRANSACTION_BLOCK_PATTERN = re.compile(
    r"```transaction\s*\n?(?P<body>.*?)```",
    re.DOTALL | re.IGNORECASE,
)


class TransactionPayload(BaseModel):
    """The JSON object inside a ```transaction block."""
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    kind: TransactionKind
    amount: Decimal = Field(..., gt=0)
    counterparty: Optional[str] = None
    description: str = Field(..., min_length=1, max_length=500)
    date: Optional[str] = Field(
        default=None,
        description="ISO date; today when omitted"
    )
    category: Optional[ExpenseCategory] = None
    asset: Optional[AssetType] = None

    @field_validator('amount', mode='before')
    @classmethod
    def parse_amount(cls, v: Any) -> Decimal:
        if isinstance(v, str):
            v = v.strip().lstrip("$").replace(",", "")
        return quantize_money(v)

    @field_validator('date')
    @classmethod
    def validate_date(cls, v: Optional[str]) -> Optional[str]:
        if v:
            date.fromisoformat(v)
        return v or None


class PayloadExtraction(BaseModel):
    """Reply text with the block removed, plus what the block contained."""

    text: str
    transaction: Optional[Transaction] = None
    found_block: bool = False
    error: Optional[str] = None


def extract_transaction_payload(
    reply: str,
    category_classifier: Optional[CategoryClassifier] = None,
    asset_classifier: Optional[AssetClassifier] = None,
    today: Optional[date] = None,
) -> PayloadExtraction:
    """
    Pull a transaction out of an assistant reply.

    Only the first block is used; every block is stripped from the text.
    """
    match = TRANSACTION_BLOCK_PATTERN.search(reply or "")
    if match is None:
        return PayloadExtraction(text=(reply or "").strip())

    text = TRANSACTION_BLOCK_PATTERN.sub("", reply).strip()
    body = match.group("body").strip()

    try:
        data = json.loads(body)
        if not isinstance(data, dict):
            raise ValueError("payload must be a JSON object")
        payload = TransactionPayload(**data)
    except (ValueError, TypeError, ValidationError) as e:
        # json.JSONDecodeError and pydantic's ValidationError are both ValueErrors
        logger.warning("llm_payload_invalid", error=str(e))
        return PayloadExtraction(text=text, found_block=True, error=str(e))

    category = payload.category
    if payload.kind == TransactionKind.EXPENSE and category is None:
        category = (category_classifier or CategoryClassifier()).classify(
            payload.description
        )

    asset = payload.asset
    if payload.kind == TransactionKind.ASSET_PURCHASE and asset is None:
        asset = (asset_classifier or AssetClassifier()).classify(payload.description)

    try:
        transaction = Transaction(
            kind=payload.kind,
            amount=payload.amount,
            counterparty=payload.counterparty,
            description=payload.description,
            date=date.fromisoformat(payload.date) if payload.date else (today or date.today()),
            category=category if payload.kind == TransactionKind.EXPENSE else None,
            asset=asset if payload.kind == TransactionKind.ASSET_PURCHASE else None,
            source=TransactionSource.LLM,
        )
    except ValidationError as e:
        logger.warning("llm_payload_invalid", error=str(e))
        return PayloadExtraction(text=text, found_block=True, error=str(e))

    return PayloadExtraction(text=text, transaction=transaction, found_block=True)
