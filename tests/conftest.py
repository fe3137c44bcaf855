import pytest
import sys
import os
from datetime import datetime, timedelta, timezone

# Add the project root to Python path so tests can import the broker modules
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from backend import RoomStore
from connections import ConnectionRegistry
from session import SessionManager


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start=None):
        self.now = start or datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return RoomStore(default_content="welcome", clock=clock)


@pytest.fixture
def registry():
    return ConnectionRegistry()


@pytest.fixture
def sessions(store, registry):
    return SessionManager(store, registry, eager_deletion=True)
