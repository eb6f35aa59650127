"""
Named Valkey clients with health checks and pipelined transactions.

Standalone servers, sentinel-managed primaries and clusters are all exposed
through the same registry; pooling, retries and failover stay inside
valkey-py.
"""

import logging
from typing import Any, Callable, Dict, List, Union

import valkey
from valkey.client import Pipeline
from valkey.cluster import ClusterNode, ValkeyCluster
from valkey.sentinel import Sentinel

from ..core.manager import BackendManager
from ..core.tls import load_trust_store
from .config import ValkeyConfig, ValkeyMode, parse_address

logger = logging.getLogger(__name__)

ValkeyHandle = Union[valkey.Valkey, ValkeyCluster]


class ValkeyManager(BackendManager[ValkeyConfig, ValkeyHandle]):
    """
    Registry of named Valkey clients.

    Usage:
        manager = ValkeyManager()
        manager.boot_up({"default": ValkeyConfig(addr="127.0.0.1:6379")})
        manager.get_client("default").set("key", "value")
        manager.shutdown()
    """

    kind = "valkey"

    def _create_client(self, name: str, config: ValkeyConfig) -> ValkeyHandle:
        kwargs = config.to_connection_kwargs()
        kwargs.setdefault("socket_connect_timeout", self.options.ping_timeout)

        if config.ca_cert_file:
            trust_store = load_trust_store(config.ca_cert_file)
            kwargs["ssl"] = True
            kwargs["ssl_ca_data"] = trust_store.pem

        if config.min_idle > 0:
            logger.debug(f"valkey [{name}] min_idle={config.min_idle} has no valkey-py equivalent, ignored")

        if config.mode == ValkeyMode.SENTINEL:
            return self._create_sentinel_client(config, kwargs)
        if config.mode == ValkeyMode.CLUSTER:
            return self._create_cluster_client(config, kwargs)

        host, port = parse_address(config.addr)
        return valkey.Valkey(host=host, port=port, db=config.db, **kwargs)

    def _create_sentinel_client(self, config: ValkeyConfig, kwargs: Dict[str, Any]) -> valkey.Valkey:
        sentinel = Sentinel(
            list(config.node_addresses()),
            socket_timeout=kwargs.get("socket_timeout"),
            socket_connect_timeout=kwargs.get("socket_connect_timeout"),
        )
        return sentinel.master_for(config.master_name, db=config.db, **kwargs)

    def _create_cluster_client(self, config: ValkeyConfig, kwargs: Dict[str, Any]) -> ValkeyCluster:
        nodes = [ClusterNode(host, port) for host, port in config.node_addresses()]
        return ValkeyCluster(startup_nodes=nodes, **kwargs)

    def _ping(self, client: ValkeyHandle) -> Any:
        return client.ping()

    def _close(self, client: ValkeyHandle) -> None:
        client.close()

    def _describe(self, config: ValkeyConfig) -> Dict[str, Any]:
        return {"mode": config.mode.value, "target": str(config)}

    def run_transaction(self, name: str, work: Callable[[Pipeline], Any]) -> List[Any]:
        """
        Run ``work`` as one batch on the instance ``name``.

        ``work`` queues commands on the pipeline it receives. If it raises,
        nothing is sent to the server and the exception propagates unchanged.

        Standalone and sentinel instances wrap the batch in MULTI/EXEC. valkey-py
        rejects transactional pipelines on clusters, so a cluster instance
        sends the batch through a cluster pipeline instead: commands are
        grouped per node and are not executed atomically.

        Args:
            name: Registered instance name
            work: Callable queuing commands on the pipeline

        Returns:
            List[Any]: Reply of every queued command, in order

        Raises:
            InstanceNotFoundError: If ``name`` was never registered
        """
        client = self.get_client(name)
        if isinstance(client, ValkeyCluster):
            pipeline = client.pipeline()
        else:
            pipeline = client.pipeline(transaction=True)

        with pipeline as pipe:
            work(pipe)
            return pipe.execute()
