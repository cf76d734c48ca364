# Copyright (c) 2026 CartSync Contributors. All Rights Reserved.

"""
Shared test fixtures for all CartSync tests.
"""

from typing import List

import pytest
import fakeredis.aioredis

from cartsync.core.metrics import platform_metrics
from cartsync.kernel.connectivity import ConnectivityMonitor
from cartsync.kernel.redis_client import inject_redis_for_test
from cartsync.offline.queue import OfflineQueue
from cartsync.storage.kv import InMemoryKeyValueStore


class FakeClock:
    """Manually advanced clock (epoch ms)."""

    def __init__(self, start_ms: int = 1_700_000_000_000):
        self.now = start_ms

    def now_ms(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class RecordingSleep:
    """Awaitable sleep stand-in that records requested seconds."""

    def __init__(self):
        self.calls: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


class FakeApply:
    """Apply hook that fails while ``failures`` is positive."""

    def __init__(self, failures: int = 0, error: Exception = None):
        self.failures = failures
        self.error = error or ConnectionError("network unreachable")
        self.seen = []

    async def __call__(self, operation):
        self.seen.append(operation.model_copy(deep=True))
        if self.failures > 0:
            self.failures -= 1
            raise self.error
        return {"applied": operation.id}


@pytest.fixture(autouse=True)
def reset_metrics():
    platform_metrics.reset()
    yield
    platform_metrics.reset()


@pytest.fixture
def mock_redis():
    """Provide a FakeRedis async instance wired into the pool factory."""
    r = fakeredis.aioredis.FakeRedis(decode_responses=True)
    inject_redis_for_test(r)
    return r


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def storage() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def connectivity() -> ConnectivityMonitor:
    return ConnectivityMonitor(online=True)


@pytest.fixture
def apply_ok() -> FakeApply:
    return FakeApply()


@pytest.fixture
def make_queue(storage, clock, connectivity):
    """Factory for an OfflineQueue that does not auto-start its timer."""

    def _make(apply, **kwargs) -> OfflineQueue:
        kwargs.setdefault("clock", clock)
        kwargs.setdefault("connectivity", connectivity)
        kwargs.setdefault("autostart", False)
        return OfflineQueue(storage, apply, **kwargs)

    return _make


@pytest.fixture
def make_apply():
    """Factory: ``make_apply(failures=2)`` builds a FakeApply."""
    return FakeApply
