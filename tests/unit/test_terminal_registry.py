"""
Unit tests for the in-memory terminal registry and its eviction rules.
"""

import pytest

from khatapos.services.terminal_registry import TerminalRegistry


class FakeClock:

    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def registry(backend, clock):
    registry = TerminalRegistry(client_factory=lambda: backend, clock=clock)
    registry.max_sessions = 2
    registry.idle_timeout = 60
    return registry


class TestSessions:

    def test_same_terminal_same_session(self, registry):
        assert registry.get('till-1') is registry.get('till-1')
        assert len(registry) == 1

    def test_drop_closes_client(self, registry, backend):
        registry.get('till-1')
        registry.drop('till-1')
        registry.drop('till-1')

        assert 'till-1' not in registry
        assert backend.closed == 1


class TestEviction:

    def test_least_recently_used_evicted_at_capacity(self, registry, backend):
        registry.get('till-1')
        registry.get('till-2')
        registry.get('till-3')

        assert len(registry) == 2
        assert 'till-1' not in registry
        assert backend.closed == 1

    def test_use_refreshes_recency(self, registry):
        registry.get('till-1')
        registry.get('till-2')
        registry.get('till-1')
        registry.get('till-3')

        assert 'till-1' in registry
        assert 'till-2' not in registry

    def test_idle_sessions_evicted(self, registry, clock, backend):
        registry.max_sessions = 10
        registry.get('till-1')
        clock.now += 30
        registry.get('till-2')
        clock.now += 45
        registry.get('till-3')

        assert 'till-1' not in registry
        assert 'till-2' in registry
        assert backend.closed == 1

    def test_session_committing_is_kept(self, registry, clock):
        registry.max_sessions = 1
        busy = registry.get('till-1')
        busy._commit_lock.acquire()
        try:
            clock.now += 3600
            registry.get('till-2')

            assert 'till-1' in registry
            assert registry.get('till-1') is busy
        finally:
            busy._commit_lock.release()

    def test_evicted_terminal_starts_fresh(self, registry):
        first = registry.get('till-1')
        registry.get('till-2')
        registry.get('till-3')

        assert registry.get('till-1') is not first
