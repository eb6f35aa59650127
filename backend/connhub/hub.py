"""
Composition root owning one manager per backend.

Applications build a ``ConnectionHub`` once, boot it, pass it (or its
managers) to whatever needs a client, and shut it down on exit.
"""

import logging
from typing import List, Optional

from .cache.client import ValkeyManager
from .core.manager import BackendManager
from .database.manager import DatabaseManager, SyncFunc
from .document.client import MongoManager
from .logger.factory import setup_logging, sync_all
from .utils.config import HubSettings, load_settings

logger = logging.getLogger(__name__)


class ConnectionHub:
    """
    Mongo, Valkey and relational managers booted and shut down together.

    Usage:
        with ConnectionHub.from_file("connhub.toml") as hub:
            hub.valkey.get_client("default").ping()
    """

    def __init__(self, settings: Optional[HubSettings] = None, sync_func: Optional[SyncFunc] = None):
        """
        Args:
            settings: Validated hub settings, empty settings by default
            sync_func: Schema synchronisation hook for the relational backend
        """
        self.settings = settings or HubSettings()
        options = self.settings.boot.to_options()
        self.mongo = MongoManager(options)
        self.valkey = ValkeyManager(options)
        self.database = DatabaseManager(options, sync_func=sync_func)
        self._booted: List[BackendManager] = []

    @classmethod
    def from_file(cls, path: Optional[str] = None, sync_func: Optional[SyncFunc] = None) -> "ConnectionHub":
        """Build a hub from a settings file (see ``load_settings``)."""
        return cls(load_settings(path), sync_func=sync_func)

    @property
    def managers(self) -> List[BackendManager]:
        return [self.database, self.mongo, self.valkey]

    def setup_logging(self) -> logging.Logger:
        """Configure the package logger from the ``log`` settings."""
        return setup_logging(self.settings.log)

    def boot_up(self) -> None:
        """
        Boot every backend in turn.

        Booting is all or nothing: when one backend fails, it and every
        backend booted before it are reset (clients closed and deregistered)
        and the error is raised.
        """
        sections = [
            (self.database, self.settings.database),
            (self.mongo, self.settings.mongo),
            (self.valkey, self.settings.valkey),
        ]
        for manager, configs in sections:
            try:
                manager.boot_up(configs)
            except Exception as e:
                logger.error(f"{manager.kind} boot failed: {e}", extra={"kind": manager.kind})
                manager.reset()
                while self._booted:
                    self._booted.pop().reset()
                raise
            self._booted.append(manager)

        logger.info(
            "Connection hub booted",
            extra={
                "databases": len(self.settings.database),
                "mongos": len(self.settings.mongo),
                "valkeys": len(self.settings.valkey),
            },
        )

    def shutdown(self, timeout: Optional[float] = None) -> None:
        """Shut down booted backends in reverse boot order and flush logs."""
        while self._booted:
            self._booted.pop().shutdown(timeout)
        sync_all()

    def __enter__(self) -> "ConnectionHub":
        self.boot_up()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.shutdown()
