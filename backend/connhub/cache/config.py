"""
Valkey instance configuration.

One ``ValkeyConfig`` describes a standalone server, a sentinel-managed
primary or a cluster. Configurations are immutable once built.
"""

import os
import logging
from enum import Enum
from typing import Optional, Dict, Any, Tuple

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, model_validator

logger = logging.getLogger(__name__)

DEFAULT_VALKEY_PORT = 6379


class ValkeyMode(str, Enum):
    """Deployment topology of a Valkey instance."""

    STANDALONE = "standalone"
    SENTINEL = "sentinel"
    CLUSTER = "cluster"


def parse_address(addr: str, default_port: int = DEFAULT_VALKEY_PORT) -> Tuple[str, int]:
    """
    Split a ``host:port`` address.

    Bracketed IPv6 hosts (``[::1]:6379``) are supported; a missing port falls
    back to ``default_port``.
    """
    addr = addr.strip()
    if not addr:
        raise ValueError("Empty Valkey address")

    if addr.startswith("["):
        host, _, rest = addr[1:].partition("]")
        port = rest.lstrip(":")
    elif addr.count(":") == 1:
        host, _, port = addr.partition(":")
    else:
        host, port = addr, ""

    try:
        return host or "localhost", int(port) if port else default_port
    except ValueError:
        raise ValueError(f"Invalid port in Valkey address: {addr}") from None


class ValkeyConfig(BaseModel):
    """
    Configuration for one named Valkey instance.

    Pool sizes of zero keep the valkey-py defaults.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    mode: ValkeyMode = Field(default=ValkeyMode.STANDALONE, description="standalone, sentinel or cluster")
    addr: str = Field(default="localhost:6379", description="Server address in standalone mode")
    password: Optional[str] = Field(default=None, repr=False, description="Server password")
    db: int = Field(default=0, ge=0, description="Database number, ignored in cluster mode")
    master_name: Optional[str] = Field(default=None, description="Sentinel primary name")
    slaves: Tuple[str, ...] = Field(default=(), description="Sentinel or cluster node addresses")
    pool_size: int = Field(default=0, ge=0, description="Maximum pooled connections")
    min_idle: int = Field(default=0, ge=0, description="Minimum idle connections")
    ca_cert_file: Optional[str] = Field(default=None, description="PEM CA file enabling TLS")
    socket_timeout: Optional[float] = Field(default=None, gt=0, description="Socket read timeout in seconds")
    socket_connect_timeout: Optional[float] = Field(default=None, gt=0, description="Connect timeout in seconds")
    decode_responses: bool = Field(default=True, description="Decode replies to str")

    @model_validator(mode="after")
    def validate_topology(self) -> "ValkeyConfig":
        """Check that the fields required by the selected mode are present."""
        if self.mode == ValkeyMode.SENTINEL:
            if not self.master_name:
                raise ValueError("Sentinel mode requires master_name")
            if not self.slaves:
                raise ValueError("Sentinel mode requires at least one sentinel address in slaves")
        elif self.mode == ValkeyMode.CLUSTER and not self.slaves:
            raise ValueError("Cluster mode requires at least one node address in slaves")
        return self

    @classmethod
    def from_env(cls, prefix: str = "VALKEY") -> "ValkeyConfig":
        """
        Create ValkeyConfig from environment variables.

        Args:
            prefix: Variable prefix, e.g. ``VALKEY`` reads ``VALKEY_ADDR``

        Returns:
            ValkeyConfig: Configuration instance with values from environment
        """
        load_dotenv()

        def env(key: str, default: Optional[str] = None) -> Optional[str]:
            return os.getenv(f"{prefix}_{key}", default)

        slaves = env("SLAVES", "")
        socket_timeout = env("SOCKET_TIMEOUT")
        socket_connect_timeout = env("SOCKET_CONNECT_TIMEOUT")
        return cls(
            mode=ValkeyMode(env("MODE", "standalone").lower()),
            addr=env("ADDR", "localhost:6379"),
            password=env("PASSWORD") or None,
            db=int(env("DB", "0")),
            master_name=env("MASTER_NAME") or None,
            slaves=tuple(s.strip() for s in slaves.split(",") if s.strip()),
            pool_size=int(env("POOL_SIZE", "0")),
            min_idle=int(env("MIN_IDLE", "0")),
            ca_cert_file=env("CA_CERT_FILE") or None,
            socket_timeout=float(socket_timeout) if socket_timeout else None,
            socket_connect_timeout=float(socket_connect_timeout) if socket_connect_timeout else None,
            decode_responses=env("DECODE_RESPONSES", "true").lower() == "true",
        )

    def to_connection_kwargs(self) -> Dict[str, Any]:
        """
        Convert configuration to keyword arguments shared by every client type.

        Returns:
            Dict[str, Any]: Connection parameters for valkey-py
        """
        kwargs: Dict[str, Any] = {
            "decode_responses": self.decode_responses,
        }

        if self.password:
            kwargs["password"] = self.password
        if self.socket_timeout is not None:
            kwargs["socket_timeout"] = self.socket_timeout
        if self.socket_connect_timeout is not None:
            kwargs["socket_connect_timeout"] = self.socket_connect_timeout
        if self.pool_size > 0:
            kwargs["max_connections"] = self.pool_size

        return kwargs

    def node_addresses(self) -> Tuple[Tuple[str, int], ...]:
        """Parsed ``slaves`` addresses."""
        return tuple(parse_address(addr) for addr in self.slaves)

    def __str__(self) -> str:
        """String representation hiding sensitive information."""
        password_display = "***" if self.password else "None"
        target = self.addr if self.mode == ValkeyMode.STANDALONE else ",".join(self.slaves)
        return (
            f"ValkeyConfig(mode={self.mode.value}, target={target}, "
            f"db={self.db}, password={password_display}, "
            f"pool_size={self.pool_size})"
        )
