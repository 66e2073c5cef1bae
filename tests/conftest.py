"""
Shared pytest fixtures and configuration for all tests.
"""
import asyncio
import os
from typing import Any, Optional, Sequence

import pytest

# Hypothesis configuration for property-based testing
from hypothesis import settings, Verbosity, Phase

from pgrest_session.config import StoreSettings
from pgrest_session.services import Filter, TableEndpoint

# Default profile: balanced for local development
settings.register_profile(
    "default",
    max_examples=100,
    verbosity=Verbosity.normal,
    deadline=None,
    print_blob=True,
)

# CI profile: more thorough testing for continuous integration
settings.register_profile(
    "ci",
    max_examples=200,
    verbosity=Verbosity.verbose,
    deadline=None,
    print_blob=True,
    derandomize=True,
)

# Debug profile: minimal examples for quick debugging
settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    deadline=None,
    print_blob=True,
    phases=[Phase.explicit, Phase.reuse, Phase.generate],
)

settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "default"))


NOW = 1_700_000_000.0


class InMemoryTable(TableEndpoint):
    """
    TableEndpoint holding rows in a list.

    Every call is recorded in ``calls`` as ``(method, args)``. Setting
    ``fail_with[method]`` makes that method raise the given exception.
    """

    def __init__(self, rows: Optional[list[dict[str, Any]]] = None):
        self.rows: list[dict[str, Any]] = [dict(r) for r in rows or []]
        self.calls: list[tuple[str, tuple]] = []
        self.fail_with: dict[str, BaseException] = {}
        self.closed = False

    def _record(self, method: str, *args: Any) -> None:
        self.calls.append((method, args))
        error = self.fail_with.get(method)
        if error is not None:
            raise error

    def _matching(self, filters: Sequence[Filter]) -> list[dict[str, Any]]:
        return [r for r in self.rows if all(f.matches(r) for f in filters)]

    def calls_to(self, method: str) -> list[tuple]:
        return [args for name, args in self.calls if name == method]

    def rows_for(self, sid: str) -> list[dict[str, Any]]:
        return [r for r in self.rows if r.get("sid") == sid]

    async def read_one(self, filters):
        self._record("read_one", list(filters))
        matches = self._matching(filters)
        return dict(matches[0]) if matches else None

    async def read_many(self, filters):
        self._record("read_many", list(filters))
        return [dict(r) for r in self._matching(filters)]

    async def insert(self, row):
        self._record("insert", dict(row))
        self.rows.append(dict(row))

    async def update(self, filters, patch):
        self._record("update", list(filters), dict(patch))
        for row in self._matching(filters):
            row.update(patch)

    async def delete(self, filters):
        self._record("delete", list(filters))
        self.rows = [r for r in self.rows if not all(f.matches(r) for f in filters)]

    async def ping(self):
        return not self.closed

    async def close(self):
        self.closed = True


class ManualTimer:
    """
    Controllable replacement for asyncio.sleep.

    Each sleep() call blocks until fire() is called. wait_for_sleep()
    returns once something has entered sleep(), which for the pruner
    means a pass has just completed.
    """

    def __init__(self):
        self.delays: list[float] = []
        self._waiters: list[asyncio.Future] = []
        self._sleeping = asyncio.Event()

    async def sleep(self, delay: float) -> None:
        self.delays.append(delay)
        waiter = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        self._sleeping.set()
        try:
            await waiter
        finally:
            if waiter in self._waiters:
                self._waiters.remove(waiter)

    async def wait_for_sleep(self, timeout: float = 1.0) -> None:
        await asyncio.wait_for(self._sleeping.wait(), timeout)
        self._sleeping.clear()

    @property
    def pending(self) -> int:
        return len(self._waiters)

    def fire(self) -> None:
        for waiter in list(self._waiters):
            if not waiter.done():
                waiter.set_result(None)


class FakeClock:
    """Wall clock that only moves when told to."""

    def __init__(self, now: float = NOW):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def table() -> InMemoryTable:
    """Empty in-memory session table."""
    return InMemoryTable()


@pytest.fixture
def make_table():
    """Factory for in-memory tables seeded with rows."""
    return InMemoryTable


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def timer() -> ManualTimer:
    return ManualTimer()


@pytest.fixture
def store_settings() -> StoreSettings:
    """Settings with pruning disabled, for tests that only exercise CRUD."""
    return StoreSettings(prune_session_interval=False)


@pytest.fixture
def sample_session() -> dict:
    """Express-style session payload."""
    return {
        "cookie": {
            "originalMaxAge": 3600000,
            "maxAge": 3600000,
            "httpOnly": True,
            "path": "/",
        },
        "user_id": "user-42",
        "cart": ["sku-1", "sku-2"],
    }
