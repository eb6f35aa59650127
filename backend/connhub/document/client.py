"""
Named MongoDB clients with health checks and collection lookup.
"""

import logging
from typing import Any, Dict, Optional

from pymongo import MongoClient
from pymongo.collection import Collection
from pymongo.database import Database

from ..core.manager import BackendManager
from ..core.tls import load_trust_store
from .config import MongoConfig, mask_uri, uri_options

logger = logging.getLogger(__name__)


class MongoManager(BackendManager[MongoConfig, MongoClient]):
    """
    Registry of named MongoDB clients.

    Usage:
        manager = MongoManager()
        manager.boot_up({"main": MongoConfig(uri="mongodb://127.0.0.1:27017")})
        users = manager.get_collection("main", "app", "users")
    """

    kind = "mongo"

    def _create_client(self, name: str, config: MongoConfig) -> MongoClient:
        kwargs = config.to_client_kwargs()
        if "serverselectiontimeoutms" not in uri_options(config.uri):
            kwargs["serverSelectionTimeoutMS"] = int(self.options.ping_timeout * 1000)

        if config.ca_cert_file:
            # pymongo takes the CA path; loading it first rejects bad files up front
            trust_store = load_trust_store(config.ca_cert_file)
            kwargs["tls"] = True
            kwargs["tlsCAFile"] = trust_store.path

        return MongoClient(config.uri, **kwargs)

    def _ping(self, client: MongoClient) -> Any:
        return client.admin.command("ping")

    def _close(self, client: MongoClient) -> None:
        client.close()

    def _describe(self, config: MongoConfig) -> Dict[str, Any]:
        return {"uri": mask_uri(config.uri)}

    def get_database(self, name: str, db_name: Optional[str] = None) -> Database:
        """
        Get a database of the instance ``name``.

        Args:
            name: Registered instance name
            db_name: Database name, defaults to the configured ``database``

        Raises:
            InstanceNotFoundError: If ``name`` was never registered
            ValueError: If no database name is given or configured
        """
        client = self.get_client(name)
        db_name = db_name or self.get_config(name).database
        if not db_name:
            raise ValueError(f"mongo [{name}] has no default database configured")
        return client[db_name]

    def get_collection(self, name: str, db_name: str, collection: str) -> Collection:
        """
        Get a collection of the instance ``name``.

        Raises:
            InstanceNotFoundError: If ``name`` was never registered
        """
        return self.get_client(name)[db_name][collection]
