"""Shared test fixtures."""

import pytest

from atomic_lockfile.config import LockingParameters, RetryStrategy
from atomic_lockfile.services import lock


@pytest.fixture
def lock_path(tmp_path):
    """Path of a lock file that does not exist yet."""
    return tmp_path / "t.lock"


@pytest.fixture
def no_retry():
    """Fail on the first collision, no sleeping."""
    return LockingParameters(retry_strategy=RetryStrategy.no(), sleep_between_retries=0)


@pytest.fixture
def sleeps(monkeypatch):
    """Record requested sleeps (microseconds) instead of sleeping."""
    calls = []
    monkeypatch.setattr(lock, "_sleep", calls.append)
    return calls
