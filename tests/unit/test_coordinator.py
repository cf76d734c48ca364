# Copyright (c) 2026 CartSync Contributors. All Rights Reserved.
"""Unit tests for RetryCoordinator."""

import pytest

from cartsync.core.errors import BackendError
from cartsync.offline.models import OperationType
from cartsync.resilience.coordinator import RetryCoordinator
from cartsync.resilience.retry import RetryPolicy


def failing(error):
    calls = []

    async def op():
        calls.append(1)
        raise error

    op.calls = calls
    return op


@pytest.fixture
def coordinator(make_queue, apply_ok, fake_sleep):
    queue = make_queue(apply_ok)
    return RetryCoordinator(queue, RetryPolicy(max_retries=2, base_delay_ms=10), sleep=fake_sleep)


class TestRetryCoordinator:
    @pytest.mark.asyncio
    async def test_with_retry_uses_policy_and_sleep(self, coordinator, fake_sleep):
        op = failing(ConnectionError("network"))
        with pytest.raises(ConnectionError):
            await coordinator.with_retry(op)
        assert len(op.calls) == 3
        assert fake_sleep.calls == [0.01, 0.02]

    @pytest.mark.asyncio
    async def test_with_retry_overrides(self, coordinator):
        op = failing(ConnectionError("network"))
        with pytest.raises(ConnectionError):
            await coordinator.with_retry(op, max_retries=0)
        assert len(op.calls) == 1

    @pytest.mark.asyncio
    async def test_run_or_enqueue_success(self, coordinator):
        async def op():
            return [{"id": 1}]

        result, op_id = await coordinator.run_or_enqueue(op, "create", "shopping_items", {"name": "Milk"})
        assert result == [{"id": 1}]
        assert op_id is None
        assert coordinator.get_offline_operations() == []

    @pytest.mark.asyncio
    async def test_run_or_enqueue_defers_transient_failure(self, coordinator):
        op = failing(ConnectionError("network unreachable"))

        result, op_id = await coordinator.run_or_enqueue(
            op, OperationType.CREATE, "shopping_items", {"name": "Milk"},
        )

        assert result is None
        queued = coordinator.get_offline_operations()
        assert [q.id for q in queued] == [op_id]
        assert queued[0].data == {"name": "Milk"}

    @pytest.mark.asyncio
    async def test_run_or_enqueue_fatal_propagates(self, coordinator):
        op = failing(BackendError("forbidden", status=403))
        with pytest.raises(BackendError):
            await coordinator.run_or_enqueue(op, "delete", "shopping_items", {"match": {"id": 1}})
        assert coordinator.get_offline_operations() == []

    @pytest.mark.asyncio
    async def test_offline_delegation(self, coordinator):
        op_id = await coordinator.add_offline_operation("custom", "recalculate_totals", {"list_id": 1})
        assert len(coordinator.get_offline_operations()) == 1

        assert await coordinator.remove_offline_operation(op_id) is True
        assert coordinator.get_offline_operations() == []

        await coordinator.load_offline_operations()
        assert coordinator.get_offline_operations() == []

    @pytest.mark.asyncio
    async def test_initialize_and_shutdown(self, coordinator, connectivity):
        await coordinator.initialize()
        assert coordinator.queue.processing is True
        await coordinator.shutdown()
        assert coordinator.queue.processing is False
        assert connectivity.listener_count == 0
