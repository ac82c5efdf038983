"""
Ledger

One set of books: the account registry, the engine that posts to it
and the append-only journal of what was posted.

CRITICAL: A Ledger has a single writer at a time. Every posting and
every report read takes the same lock, so readers never see a
half-applied transaction. There is no process-wide ledger; each chat
session owns its own (see sessions.py).
"""

import threading
from collections.abc import Iterator
from contextlib import contextmanager
from decimal import Decimal
from typing import Optional
from uuid import UUID

import structlog

from financeai.config.settings import LedgerSettings, get_settings
from financeai.ledger.engine import DuplicateTransactionError, LedgerEngine
from financeai.ledger.registry import CASH, AccountRegistry
from financeai.models.chat import BalanceSummary
from financeai.models.ledger import JournalEntry, LedgerTotals, Transaction
from financeai.services.storage import InMemoryJournalStorage, JournalStorageInterface


logger = structlog.get_logger(__name__)


class Ledger:
    """A session's books."""

    def __init__(
        self,
        registry: Optional[AccountRegistry] = None,
        engine: Optional[LedgerEngine] = None,
        journal: Optional[JournalStorageInterface] = None,
    ):
        self.registry = registry or AccountRegistry.open()
        self.engine = engine or LedgerEngine()
        self.journal = journal or InMemoryJournalStorage()
        self._lock = threading.RLock()
        self._applied: set[UUID] = set()

    @classmethod
    def from_settings(cls, settings: Optional[LedgerSettings] = None) -> "Ledger":
        """Open fresh books with the configured starting capital and policy."""
        settings = settings or get_settings().ledger
        return cls(
            registry=AccountRegistry.open(settings.starting_capital),
            engine=LedgerEngine(
                tolerance=settings.balance_tolerance,
                allow_negative_liabilities=settings.allow_negative_liabilities,
            ),
        )

    def apply(self, transaction: Transaction) -> JournalEntry:
        """
        Post a transaction.

        Raises:
            DuplicateTransactionError: This transaction was already posted
            LedgerError: Any other rejection; balances are unchanged
            StorageError: The journal refused the entry; balances are rolled back
        """
        entry, _ = self.post(transaction)
        return entry

    def post(self, transaction: Transaction) -> tuple[JournalEntry, BalanceSummary]:
        """Post a transaction and report cash before and after."""
        with self._lock:
            if transaction.id in self._applied:
                raise DuplicateTransactionError(
                    f"Transaction {transaction.id} has already been posted"
                )

            previous_cash = self.registry.balance(CASH)
            prepared = self.engine.prepare(transaction, self.registry)
            previous = {code: self.registry.balance(code) for code in prepared.new_balances}
            entry = self.engine.commit(prepared, self.registry)
            try:
                self.journal.append_entry(entry)
            except Exception:
                # The journal must match the books: undo the balances
                self.registry.commit_balances(previous)
                raise
            self._applied.add(transaction.id)

            summary = BalanceSummary(
                previous_balance=previous_cash,
                new_balance=self.registry.balance(CASH),
            )

        debit, credit = entry.debit_posting, entry.credit_posting
        logger.info(
            "journal_posted",
            entry_id=str(entry.id),
            transaction_id=str(transaction.id),
            kind=transaction.kind.value,
            debit_account=debit.account_code,
            credit_account=credit.account_code,
            amount=str(transaction.amount),
        )
        return entry, summary

    def has_applied(self, transaction_id: UUID) -> bool:
        with self._lock:
            return transaction_id in self._applied

    @contextmanager
    def reading(self) -> Iterator[AccountRegistry]:
        """Hold the lock while a report reads several balances."""
        with self._lock:
            yield self.registry

    def totals(self) -> LedgerTotals:
        with self._lock:
            return self.registry.totals()

    def cash_balance(self) -> Decimal:
        with self._lock:
            return self.registry.balance(CASH)

    def snapshot(self) -> dict[str, Decimal]:
        with self._lock:
            return self.registry.snapshot()

    def entries(self, limit: Optional[int] = None) -> list[JournalEntry]:
        """Journal entries in posting order."""
        return self.journal.list_entries(limit=limit)
