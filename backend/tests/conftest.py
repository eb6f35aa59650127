"""
Shared fakes for the connection hub tests.

The fakes stand in for client library handles so the registry, startup
sequencer and health monitor can be tested without running servers.
"""

import threading
import time
from typing import Any, Dict, List

import pytest

from connhub.core.manager import BackendManager, BootOptions


class FakeClient:
    """Client handle recording pings and closes."""

    def __init__(self, label="client", healthy=True, fail_close=False, ping_delay=0.0, create_error=None):
        self.label = label
        self.healthy = healthy
        self.fail_close = fail_close
        self.ping_delay = ping_delay
        self.create_error = create_error
        self.ping_count = 0
        self.close_count = 0
        self._lock = threading.Lock()

    def ping(self):
        with self._lock:
            self.ping_count += 1
        if self.ping_delay:
            time.sleep(self.ping_delay)
        if not self.healthy:
            raise ConnectionError(f"{self.label} unreachable")
        return True

    def close(self):
        self.close_count += 1
        if self.fail_close:
            raise RuntimeError(f"{self.label} close failed")

    @property
    def closed(self) -> bool:
        return self.close_count > 0


class FakeManager(BackendManager[FakeClient, FakeClient]):
    """Manager whose configuration entries are the clients themselves."""

    kind = "fake"

    def __init__(self, options=None):
        super().__init__(options)
        self.created: List[str] = []
        self.prepared: List[str] = []

    def _create_client(self, name: str, config: FakeClient) -> FakeClient:
        self.created.append(name)
        if config.create_error is not None:
            raise config.create_error
        return config

    def _ping(self, client: FakeClient) -> Any:
        return client.ping()

    def _close(self, client: FakeClient) -> None:
        client.close()

    def _prepare(self, name: str, config: FakeClient, client: FakeClient) -> None:
        self.prepared.append(name)

    def _describe(self, config: FakeClient) -> Dict[str, Any]:
        return {"label": config.label}


def wait_for(predicate, timeout=2.0, interval=0.01) -> bool:
    """Poll ``predicate`` until it is true or ``timeout`` expires."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


@pytest.fixture
def fast_options():
    """Boot options with short timeouts suitable for tests."""
    return BootOptions(ping_timeout=1.0, health_check_interval=3600)


@pytest.fixture
def manager(fast_options):
    """FakeManager shut down after the test."""
    mgr = FakeManager(fast_options)
    yield mgr
    mgr.shutdown(timeout=1.0)
