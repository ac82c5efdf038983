"""
Per-session ledgers.

Each conversation gets its own books. Ledgers are created lazily the
first time a session id is seen and live until the session is reset.
"""

import threading
from collections.abc import Callable
from typing import Optional

import structlog

from financeai.config.settings import LedgerSettings
from financeai.ledger.ledger import Ledger


logger = structlog.get_logger(__name__)


class LedgerSessionManager:
    """Owns one Ledger per session id."""

    def __init__(
        self,
        factory: Optional[Callable[[], Ledger]] = None,
        settings: Optional[LedgerSettings] = None,
    ):
        if factory is None:
            factory = lambda: Ledger.from_settings(settings)
        self._factory = factory
        self._ledgers: dict[str, Ledger] = {}
        self._lock = threading.Lock()

    def get_ledger(self, session_id: str) -> Ledger:
        """The session's ledger, opened on first use."""
        with self._lock:
            ledger = self._ledgers.get(session_id)
            if ledger is None:
                ledger = self._factory()
                self._ledgers[session_id] = ledger
                logger.info("ledger_opened", session_id=session_id)
            return ledger

    def reset(self, session_id: str) -> bool:
        """Drop a session's books. Returns False if there were none."""
        with self._lock:
            dropped = self._ledgers.pop(session_id, None) is not None
        if dropped:
            logger.info("ledger_reset", session_id=session_id)
        return dropped

    def __contains__(self, session_id: object) -> bool:
        with self._lock:
            return session_id in self._ledgers

    def __len__(self) -> int:
        with self._lock:
            return len(self._ledgers)

    def session_ids(self) -> list[str]:
        with self._lock:
            return list(self._ledgers)
