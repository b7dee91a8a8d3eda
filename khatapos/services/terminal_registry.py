"""
Terminal registry - one CheckoutSession per till, kept in process memory.

Sessions hold speculative, unpersisted state only; losing them (restart)
loses nothing the backend has committed.

The map is bounded: sessions idle longer than TERMINAL_IDLE_TIMEOUT are
evicted, and past MAX_TERMINAL_SESSIONS the least recently used one goes.
A session with a commit in flight is never evicted.
"""
import logging
import threading
import time
from collections import OrderedDict
from decimal import Decimal
from typing import Callable, Optional

from flask import Flask, current_app

from khatapos.services.checkout_service import CheckoutSession
from khatapos.services.pos_api_client import PosApiClient

logger = logging.getLogger(__name__)

EXTENSION_KEY = 'khatapos_terminals'


class TerminalRegistry:
    """Thread-safe terminal_id -> CheckoutSession map."""

    def __init__(
        self,
        app: Optional[Flask] = None,
        client_factory: Optional[Callable[[], PosApiClient]] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        # terminal_id -> (session, last_used), least recently used first
        self._sessions: 'OrderedDict[str, tuple]' = OrderedDict()
        self._lock = threading.Lock()
        self._client_factory = client_factory
        self._clock = clock
        self._reorder_level = 5
        self._credit_limit = Decimal('5000')
        self.max_sessions = 50
        self.idle_timeout = 8 * 3600

        if app:
            self.init_app(app)

    def init_app(self, app: Flask) -> None:
        """Read defaults from config and register on the app."""
        self._reorder_level = int(app.config.get('LOW_STOCK_REORDER_LEVEL', 5))
        self._credit_limit = Decimal(str(app.config.get('DEFAULT_CREDIT_LIMIT', '5000')))
        self.max_sessions = int(app.config.get('MAX_TERMINAL_SESSIONS', self.max_sessions))
        self.idle_timeout = int(app.config.get('TERMINAL_IDLE_TIMEOUT', self.idle_timeout))
        if self._client_factory is None:
            config = app.config
            self._client_factory = lambda: PosApiClient.from_config(config)
        app.extensions[EXTENSION_KEY] = self
        logger.info(f"[TERMINALS] Registry ready, backend={app.config.get('POS_API_BASE_URL')}")

    def new_client(self) -> PosApiClient:
        return self._client_factory()

    def get(self, terminal_id: str) -> CheckoutSession:
        """Return the session for a terminal, creating it on first use."""
        with self._lock:
            now = self._clock()
            entry = self._sessions.pop(terminal_id, None)
            if entry is None:
                self._evict(now)
                session = CheckoutSession(
                    terminal_id,
                    self.new_client(),
                    default_reorder_level=self._reorder_level,
                    default_credit_limit=self._credit_limit,
                )
                logger.info(f"[TERMINALS] New session for {terminal_id}")
            else:
                session = entry[0]
            self._sessions[terminal_id] = (session, now)
            return session

    def _evict(self, now: float) -> None:
        """Make room for one more session. Caller holds the lock."""
        for terminal_id, (session, last_used) in list(self._sessions.items()):
            if now - last_used > self.idle_timeout and not session.commit_in_flight:
                self._close(terminal_id, 'idle')

        for terminal_id, (session, _) in list(self._sessions.items()):
            if len(self._sessions) < self.max_sessions:
                break
            if not session.commit_in_flight:
                self._close(terminal_id, 'capacity')

    def _close(self, terminal_id: str, reason: str) -> None:
        session, _ = self._sessions.pop(terminal_id)
        session.client.close()
        logger.info(f"[TERMINALS] Evicted session {terminal_id} ({reason})")

    def drop(self, terminal_id: str) -> None:
        with self._lock:
            if terminal_id in self._sessions:
                self._close(terminal_id, 'dropped')

    def __contains__(self, terminal_id):
        return terminal_id in self._sessions

    def __len__(self):
        return len(self._sessions)


def init_terminals(app: Flask, client_factory: Optional[Callable[[], PosApiClient]] = None) -> TerminalRegistry:
    return TerminalRegistry(app, client_factory=client_factory)


def get_registry() -> TerminalRegistry:
    return current_app.extensions[EXTENSION_KEY]
