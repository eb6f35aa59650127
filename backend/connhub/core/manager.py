"""
Generic startup sequencer, lookup and shutdown for one backend type.

Concrete managers (Mongo, Valkey, relational) only describe how to build,
probe and close a client; booting, registration, health monitoring and
teardown are shared here.
"""

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Generic, Iterable, List, Mapping, Optional, Tuple, TypeVar, Union

from .errors import ClientConnectionError, DuplicateInstanceError, ManagerShutDownError, TrustStoreError
from .monitor import DEFAULT_HEALTH_CHECK_INTERVAL, HealthMonitor
from .registry import ClientRegistry

logger = logging.getLogger(__name__)

C = TypeVar("C")
T = TypeVar("T")

ConfigSource = Union[Mapping[str, C], Iterable[Tuple[str, C]]]

DEFAULT_PING_TIMEOUT = 10.0


@dataclass(frozen=True)
class BootOptions:
    """
    Startup behaviour shared by every backend manager.

    Attributes:
        ping_timeout: Seconds allowed for the liveness probe of each new client
        health_check_interval: Seconds between two health monitor rounds
        rollback_on_failure: Close and deregister the clients added by a
            ``boot_up`` call when a later entry of that call fails
        start_monitor: Launch the health monitor after a successful boot
    """
    ping_timeout: float = DEFAULT_PING_TIMEOUT
    health_check_interval: float = DEFAULT_HEALTH_CHECK_INTERVAL
    rollback_on_failure: bool = False
    start_monitor: bool = True

    def __post_init__(self):
        if self.ping_timeout <= 0:
            raise ValueError("ping_timeout must be positive")
        if self.health_check_interval <= 0:
            raise ValueError("health_check_interval must be positive")


class BackendManager(ABC, Generic[C, T]):
    """
    Owns the named clients of one backend from boot until shutdown.

    Subclasses implement ``_create_client``, ``_ping`` and ``_close``, and
    may override ``_prepare`` to run work between the probe and registration.
    """

    kind = "backend"

    def __init__(self, options: Optional[BootOptions] = None):
        self.options = options or BootOptions()
        self.registry: ClientRegistry[T] = ClientRegistry(self.kind)
        self.monitor = HealthMonitor(
            self.kind,
            self.registry,
            self._ping,
            interval=self.options.health_check_interval,
        )
        self._configs: Dict[str, C] = {}
        self._configs_lock = threading.Lock()
        self._shutdown_lock = threading.Lock()
        self._is_shut_down = False

    def boot_up(self, configs: ConfigSource) -> None:
        """
        Connect, probe and register one client per configuration entry.

        Processing stops at the first failing entry and its error is raised.
        Entries registered earlier in the same call stay registered unless
        ``BootOptions.rollback_on_failure`` is set.

        Args:
            configs: Mapping of instance name to config, or (name, config) pairs

        Raises:
            ClientConnectionError: If a client cannot be built or probed
            DuplicateInstanceError: If an instance name is already registered
            TrustStoreError: If a configured CA file cannot be loaded
            ManagerShutDownError: If ``shutdown`` was already called
        """
        if self._is_shut_down:
            raise ManagerShutDownError(self.kind)

        entries = list(configs.items()) if isinstance(configs, Mapping) else list(configs)
        registered: List[str] = []

        try:
            for name, config in entries:
                self._boot_one(name, config)
                registered.append(name)
        except Exception:
            if self.options.rollback_on_failure and registered:
                self._rollback(registered)
            raise

        if self.options.start_monitor:
            with self._shutdown_lock:
                if self._is_shut_down:
                    raise ManagerShutDownError(self.kind)
                self.monitor.start()

    def _boot_one(self, name: str, config: C) -> None:
        # The config is reserved first so lookups never see a handle without one
        with self._configs_lock:
            if name in self._configs or name in self.registry:
                raise DuplicateInstanceError(self.kind, name)
            self._configs[name] = config

        try:
            client = self._create_client(name, config)
        except (ClientConnectionError, TrustStoreError):
            self._release_config(name)
            raise
        except Exception as e:
            self._release_config(name)
            raise ClientConnectionError(self.kind, name, f"connection failed: {e}") from e

        try:
            self._probe(name, client)
            self._prepare(name, config, client)
            self.registry.register(name, client)
        except Exception:
            self._release_config(name)
            self._close_quietly(name, client)
            raise

        logger.info(
            f"{self.kind} [{name}] connected",
            extra={"kind": self.kind, "instance": name, **self._describe(config)},
        )

    def _release_config(self, name: str) -> None:
        with self._configs_lock:
            self._configs.pop(name, None)

    def _probe(self, name: str, client: T) -> None:
        """
        Ping ``client`` on a daemon helper thread, bounded by ``ping_timeout``.

        A probe still hanging after the timeout is abandoned; being a daemon
        thread it never holds up interpreter exit.
        """
        timeout = self.options.ping_timeout
        outcome: Dict[str, Any] = {}

        def ping() -> None:
            try:
                outcome["result"] = self._ping(client)
            except Exception as e:
                outcome["error"] = e

        thread = threading.Thread(target=ping, name=f"{self.kind}-ping-{name}", daemon=True)
        thread.start()
        thread.join(timeout)

        if thread.is_alive():
            raise ClientConnectionError(self.kind, name, f"ping timed out after {timeout}s")
        if "error" in outcome:
            error = outcome["error"]
            raise ClientConnectionError(self.kind, name, f"ping failed: {error}") from error
        if outcome.get("result") is False:
            raise ClientConnectionError(self.kind, name, "ping returned False")

    def _rollback(self, names: List[str]) -> None:
        for name in names:
            client = self.registry.remove(name)
            self._release_config(name)
            self._close_quietly(name, client)
            logger.warning(
                f"{self.kind} [{name}] rolled back after boot failure",
                extra={"kind": self.kind, "instance": name},
            )

    def _close_quietly(self, name: str, client: T) -> None:
        try:
            self._close(client)
        except Exception as e:
            logger.error(
                f"Failed to close {self.kind} [{name}]: {e}",
                extra={"kind": self.kind, "instance": name, "error": str(e)},
            )

    def _close_registered(self, name: str, client: T) -> None:
        self._close(client)
        logger.info(f"{self.kind} [{name}] closed", extra={"kind": self.kind, "instance": name})

    def get_client(self, name: str) -> T:
        """
        Get the client registered under ``name``.

        Raises:
            InstanceNotFoundError: If no client was booted under ``name``
        """
        return self.registry.get(name)

    def get_config(self, name: str) -> C:
        """Get the configuration ``name`` was booted with."""
        self.registry.get(name)
        return self._configs[name]

    def names(self) -> List[str]:
        return self.registry.names()

    def health_check(self) -> Dict[str, bool]:
        """Run one probe round synchronously and return the outcome per instance."""
        return self.monitor.run_once()

    def reset(self, timeout: Optional[float] = None) -> None:
        """
        Stop the health monitor, then close and deregister every client.

        Unlike ``shutdown`` the manager stays usable: a later ``boot_up``
        starts from an empty registry.

        Args:
            timeout: Seconds to wait for the health monitor thread to exit
        """
        self.monitor.stop(timeout)
        removed = self.registry.remove_all()
        for name, client in removed:
            self._release_config(name)
            self._close_quietly(name, client)
        logger.info(f"{self.kind} reset ({len(removed)} removed)", extra={"kind": self.kind})

    def shutdown(self, timeout: Optional[float] = None) -> None:
        """
        Stop the health monitor and close every client.

        Close failures are logged and never raised. Only the first call does
        any work; later calls return immediately.

        Args:
            timeout: Seconds to wait for the health monitor thread to exit
        """
        with self._shutdown_lock:
            if self._is_shut_down:
                return
            self._is_shut_down = True

        self.monitor.stop(timeout)
        closed = self.registry.close_all(self._close_registered)
        logger.info(
            f"{self.kind} shutdown complete ({closed}/{len(self.registry)} closed)",
            extra={"kind": self.kind},
        )

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.shutdown()

    def _prepare(self, name: str, config: C, client: T) -> None:
        """Hook run after a successful probe and before registration."""
        return None

    def _describe(self, config: C) -> Dict[str, Any]:
        """Loggable, secret-free fields describing ``config``."""
        return {}

    @abstractmethod
    def _create_client(self, name: str, config: C) -> T:
        """Build a client for ``config``."""

    @abstractmethod
    def _ping(self, client: T) -> Any:
        """Liveness probe; raise (or return False) when unreachable."""

    @abstractmethod
    def _close(self, client: T) -> None:
        """Release every resource held by ``client``."""
