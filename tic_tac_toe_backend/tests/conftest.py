import random

import pytest

from tictactoe.ai import AITier
from tictactoe.history import MatchHistory
from tictactoe.models import GameMode
from tictactoe.scheduler import Timer
from tictactoe.session import MatchSession
from tictactoe.store import MemoryStore


class FakeTimer(Timer):
    """Collects scheduled callbacks; tests fire them by hand."""

    def __init__(self):
        self.scheduled = []
        self.cancelled = set()

    def schedule(self, delay, callback):
        handle = len(self.scheduled)
        self.scheduled.append((delay, callback))
        return handle

    def cancel(self, handle):
        self.cancelled.add(handle)

    @property
    def pending(self):
        return [h for h in range(len(self.scheduled)) if h not in self.cancelled]

    def fire_all(self):
        """Run every callback that was not cancelled, including ones scheduled while firing."""
        fired = set()
        while True:
            due = [h for h in self.pending if h not in fired]
            if not due:
                return
            for handle in due:
                fired.add(handle)
                self.scheduled[handle][1]()

    def fire_stale(self, handle):
        """Run a callback even though it was cancelled, as a late timer would."""
        self.scheduled[handle][1]()


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def history(store):
    return MatchHistory(store)


@pytest.fixture
def timer():
    return FakeTimer()


@pytest.fixture
def make_session(history, timer):
    def _make(mode=GameMode.TWO_PLAYER, tier=AITier.HEURISTIC, ai_delay=0.75, seed=7):
        return MatchSession(history, timer, mode=mode, tier=tier, ai_delay=ai_delay, rng=random.Random(seed))
    return _make
