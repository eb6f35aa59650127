"""
Periodic liveness probing of every registered client.

A failed probe is only logged: the handle stays registered, nothing is
reconnected and the loop keeps running until ``stop`` is called.
"""

import logging
import threading
import time
from typing import Any, Callable, Dict, Optional

from .registry import ClientRegistry

logger = logging.getLogger(__name__)

# Reference period between two probe rounds
DEFAULT_HEALTH_CHECK_INTERVAL = 5 * 60 * 60.0


class HealthMonitor:
    """
    Background thread that pings every handle of a registry on a fixed period.

    The thread waits on a stop event rather than sleeping so that ``stop``
    returns promptly instead of after a full interval.
    """

    def __init__(
        self,
        kind: str,
        registry: ClientRegistry,
        probe: Callable[[Any], None],
        interval: float = DEFAULT_HEALTH_CHECK_INTERVAL,
    ):
        """
        Args:
            kind: Backend label used in log messages
            registry: Registry whose handles are probed
            probe: Callable raising (or returning False) when a handle is unreachable
            interval: Seconds between two probe rounds
        """
        if interval <= 0:
            raise ValueError("Health check interval must be positive")

        self.kind = kind
        self.registry = registry
        self.probe = probe
        self.interval = interval
        self.last_results: Dict[str, bool] = {}
        self.last_checked_at: Optional[float] = None
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._start_lock = threading.Lock()

    def start(self) -> None:
        """Start the probe loop; a second call while running is a no-op."""
        with self._start_lock:
            if self.is_running:
                return
            self._stop_event.clear()
            self._thread = threading.Thread(
                target=self._run,
                name=f"{self.kind}-health-monitor",
                daemon=True,
            )
            self._thread.start()
        logger.debug(f"{self.kind} health monitor started (interval={self.interval}s)")

    def stop(self, timeout: Optional[float] = None) -> None:
        """Signal the loop to exit and wait for the thread to finish."""
        self._stop_event.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
            if thread.is_alive():
                logger.warning(f"{self.kind} health monitor did not stop within {timeout}s")
                return
        self._thread = None
        logger.debug(f"{self.kind} health monitor stopped")

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def run_once(self) -> Dict[str, bool]:
        """
        Probe every registered handle once.

        Returns:
            Dict[str, bool]: Probe outcome per instance name
        """
        results: Dict[str, bool] = {}
        for name, handle in self.registry.snapshot():
            try:
                healthy = self.probe(handle) is not False
                if not healthy:
                    logger.error(
                        f"{self.kind} health check failed for [{name}]: probe returned False",
                        extra={"kind": self.kind, "instance": name},
                    )
            except Exception as e:
                healthy = False
                logger.error(
                    f"{self.kind} health check failed for [{name}]: {e}",
                    extra={"kind": self.kind, "instance": name, "error": str(e)},
                )
            results[name] = healthy

        self.last_results = results
        self.last_checked_at = time.time()
        return results

    def _run(self) -> None:
        while not self._stop_event.wait(self.interval):
            try:
                self.run_once()
            except Exception as e:
                # A crashed round must not end the loop
                logger.exception(f"{self.kind} health monitor round crashed: {e}")
