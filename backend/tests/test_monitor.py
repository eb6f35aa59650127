"""
Tests for the periodic health monitor.
"""

import logging

import pytest

from connhub.core import ClientRegistry, HealthMonitor
from conftest import FakeClient, wait_for


@pytest.fixture
def registry():
    registry = ClientRegistry("fake")
    registry.register("up", FakeClient("up"))
    registry.register("down", FakeClient("down", healthy=False))
    return registry


class TestHealthMonitor:
    """Test probe rounds and the background loop."""

    def test_run_once_reports_each_instance(self, registry, caplog):
        """Test that a failing probe is logged and the handle kept."""
        monitor = HealthMonitor("fake", registry, lambda client: client.ping())

        with caplog.at_level(logging.ERROR, logger="connhub.core.monitor"):
            results = monitor.run_once()

        assert results == {"up": True, "down": False}
        assert monitor.last_results == results
        assert monitor.last_checked_at is not None
        assert "fake health check failed for [down]" in caplog.text
        assert "down" in registry

    def test_probe_returning_false_is_unhealthy(self):
        """Test that a probe returning False counts as a failure."""
        registry = ClientRegistry("fake")
        registry.register("a", FakeClient("a"))
        monitor = HealthMonitor("fake", registry, lambda client: False)

        assert monitor.run_once() == {"a": False}

    def test_background_loop_probes_until_stopped(self, registry):
        """Test that the loop keeps running through failures and stops on request."""
        up = registry.get("up")
        down = registry.get("down")
        monitor = HealthMonitor("fake", registry, lambda client: client.ping(), interval=0.01)

        monitor.start()
        try:
            assert monitor.is_running
            assert wait_for(lambda: up.ping_count >= 3 and down.ping_count >= 3)
        finally:
            monitor.stop(timeout=2)

        assert not monitor.is_running
        count = up.ping_count
        assert not wait_for(lambda: up.ping_count > count, timeout=0.1)

    def test_start_twice_runs_one_thread(self, registry):
        """Test that starting a running monitor is a no-op."""
        monitor = HealthMonitor("fake", registry, lambda client: client.ping(), interval=3600)
        monitor.start()
        thread = monitor._thread
        monitor.start()

        assert monitor._thread is thread
        monitor.stop(timeout=2)
        assert not thread.is_alive()

    def test_stop_returns_promptly_with_long_interval(self, registry):
        """Test that stop does not wait for the next round."""
        monitor = HealthMonitor("fake", registry, lambda client: client.ping())
        monitor.start()
        monitor.stop(timeout=2)

        assert not monitor.is_running
        assert registry.get("up").ping_count == 0

    def test_stop_without_start(self, registry):
        """Test that stopping an idle monitor is safe."""
        monitor = HealthMonitor("fake", registry, lambda client: client.ping())
        monitor.stop()
        assert not monitor.is_running

    def test_invalid_interval(self, registry):
        """Test that a non-positive interval is rejected."""
        with pytest.raises(ValueError, match="must be positive"):
            HealthMonitor("fake", registry, lambda client: True, interval=0)
