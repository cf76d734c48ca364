# Copyright (c) 2026 CartSync Contributors. All Rights Reserved.
"""Unit tests for RetryTracker."""

import pytest

from cartsync.resilience.retry import RetryPolicy
from cartsync.resilience.tracker import RetryTracker


class TestRetryTracker:
    def test_initial_state(self):
        tracker = RetryTracker()
        assert tracker.loading is False
        assert tracker.data is None
        assert tracker.error is None
        assert tracker.attempts == 0

    @pytest.mark.asyncio
    async def test_success_after_retry(self, fake_sleep):
        events = []
        errors = [ConnectionError("network")]

        async def op():
            assert tracker.loading is True
            if errors:
                raise errors.pop()
            return {"lists": 2}

        tracker = RetryTracker(
            RetryPolicy(base_delay_ms=5),
            on_start=lambda: events.append("start"),
            on_success=lambda data: events.append(("success", data)),
            sleep=fake_sleep,
        )

        result = await tracker.execute(op)

        assert result == {"lists": 2}
        assert tracker.data == {"lists": 2}
        assert tracker.loading is False
        assert tracker.error is None
        assert tracker.attempts == 1
        assert events == ["start", ("success", {"lists": 2})]

    @pytest.mark.asyncio
    async def test_exhausted_reports_error(self, fake_sleep):
        failures = []
        policy_fails = []

        async def op():
            raise TimeoutError("timeout")

        tracker = RetryTracker(
            RetryPolicy(max_retries=1, base_delay_ms=5, on_fail=lambda e, n: policy_fails.append(n)),
            on_error=failures.append,
            sleep=fake_sleep,
        )

        with pytest.raises(TimeoutError):
            await tracker.execute(op)

        assert tracker.loading is False
        assert isinstance(tracker.error, TimeoutError)
        assert len(failures) == 1
        assert policy_fails == [2]

    @pytest.mark.asyncio
    async def test_fatal_error_sets_state_without_on_error(self, fake_sleep):
        failures = []

        async def op():
            raise ValueError("bad payload")

        tracker = RetryTracker(on_error=failures.append, sleep=fake_sleep)
        with pytest.raises(ValueError):
            await tracker.execute(op)

        assert isinstance(tracker.error, ValueError)
        assert failures == []
        assert fake_sleep.calls == []
