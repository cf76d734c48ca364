# Copyright (c) 2026 CartSync Contributors. All Rights Reserved.
"""Unit tests for Metrics."""

from cartsync.core.metrics import Metrics


class TestMetrics:
    def test_counter_increment(self):
        m = Metrics()
        m.inc("offline:added")
        m.inc("offline:added")
        assert m.get_counter("offline:added") == 2

    def test_counter_default_zero(self):
        m = Metrics()
        assert m.get_counter("nonexistent") == 0

    def test_gauge(self):
        m = Metrics()
        m.set_gauge("offline:queue_size", 4)
        assert m.get_gauge("offline:queue_size") == 4
        assert m.get_gauge("missing") == 0.0

    def test_observe(self):
        m = Metrics()
        m.observe("retry_delay_ms", 1000)
        m.observe("retry_delay_ms", 2000)
        snap = m.snapshot()
        assert snap["histogram_retry_delay_ms"]["avg"] == 1500.0
        assert snap["histogram_retry_delay_ms"]["max"] == 2000

    def test_observations_bounded(self):
        m = Metrics()
        for i in range(Metrics.MAX_OBSERVATIONS + 50):
            m.observe("retry_delay_ms", i)
        snap = m.snapshot()
        assert snap["histogram_retry_delay_ms"]["count"] == Metrics.MAX_OBSERVATIONS
        assert snap["histogram_retry_delay_ms"]["min"] == 50

    def test_by_label(self):
        m = Metrics()
        m.inc("offline:failed")
        m.inc("offline:failed:shopping_items", 2)
        m.inc("offline:failed:shopping_lists")
        m.inc("offline:applied:shopping_items")
        assert m.by_label("offline:failed") == {"shopping_items": 2, "shopping_lists": 1}
        assert m.by_label("retry") == {}

    def test_reset(self):
        m = Metrics()
        m.inc("a")
        m.set_gauge("b", 1)
        m.observe("c", 1)
        m.reset()
        snap = m.snapshot()
        assert snap["counters"] == {}
        assert snap["gauges"] == {}
        assert "histogram_c" not in snap

    def test_snapshot_has_uptime(self):
        snap = Metrics().snapshot()
        assert snap["uptime_seconds"] >= 0
