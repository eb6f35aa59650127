"""
Registry, startup sequencing and health monitoring shared by every backend.
"""

from .errors import (
    ConnHubError,
    ClientConnectionError,
    DuplicateInstanceError,
    TrustStoreError,
    InstanceNotFoundError,
    ManagerShutDownError,
)
from .registry import ReadWriteLock, ClientRegistry
from .monitor import HealthMonitor, DEFAULT_HEALTH_CHECK_INTERVAL
from .manager import BackendManager, BootOptions, DEFAULT_PING_TIMEOUT
from .tls import TrustStore, load_trust_store

__all__ = [
    # Errors
    "ConnHubError",
    "ClientConnectionError",
    "DuplicateInstanceError",
    "TrustStoreError",
    "InstanceNotFoundError",
    "ManagerShutDownError",

    # Registry
    "ReadWriteLock",
    "ClientRegistry",

    # Lifecycle
    "BackendManager",
    "BootOptions",
    "DEFAULT_PING_TIMEOUT",
    "HealthMonitor",
    "DEFAULT_HEALTH_CHECK_INTERVAL",

    # TLS
    "TrustStore",
    "load_trust_store",
]
