"""
connhub: named client registries for Mongo, Valkey and relational databases.

Each backend wrapper boots a set of named client connections, keeps them in a
thread-safe registry, probes them periodically and offers lookup and
transaction helpers on top of the underlying client library.
"""

__version__ = "0.1.0"

from .core import (
    BootOptions,
    ClientConnectionError,
    ConnHubError,
    DuplicateInstanceError,
    InstanceNotFoundError,
    ManagerShutDownError,
    TrustStoreError,
)
from .cache import ValkeyConfig, ValkeyManager, ValkeyMode
from .database import DatabaseConfig, DatabaseManager, EngineGroup
from .document import MongoConfig, MongoManager
from .hub import ConnectionHub
from .logger import LogConfig, setup_logging
from .utils import HubSettings, load_settings

__all__ = [
    "BootOptions",
    "ClientConnectionError",
    "ConnHubError",
    "DuplicateInstanceError",
    "InstanceNotFoundError",
    "ManagerShutDownError",
    "TrustStoreError",
    "ValkeyConfig",
    "ValkeyManager",
    "ValkeyMode",
    "DatabaseConfig",
    "DatabaseManager",
    "EngineGroup",
    "MongoConfig",
    "MongoManager",
    "ConnectionHub",
    "LogConfig",
    "setup_logging",
    "HubSettings",
    "load_settings",
]
