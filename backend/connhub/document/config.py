"""
MongoDB instance configuration.
"""

import os
from typing import Optional, Dict, Any, Set
from urllib.parse import parse_qsl, urlsplit, urlunsplit

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, model_validator


def mask_uri(uri: str) -> str:
    """Replace the password of a connection URI with ``***``."""
    parts = urlsplit(uri)
    userinfo, sep, hosts = parts.netloc.rpartition("@")
    if not sep or ":" not in userinfo:
        return uri
    user = userinfo.split(":", 1)[0]
    return urlunsplit(parts._replace(netloc=f"{user}:***@{hosts}"))


def uri_options(uri: str) -> Set[str]:
    """Lower-cased names of the options given in the query string of ``uri``."""
    return {key.lower() for key, _ in parse_qsl(urlsplit(uri).query, keep_blank_values=True)}


class MongoConfig(BaseModel):
    """
    Configuration for one named MongoDB deployment.

    Credentials given here are only applied when both username and password
    are set; otherwise whatever the URI carries is used. Pool sizes of zero
    keep the pymongo defaults.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    uri: str = Field(default="mongodb://127.0.0.1:27017", description="MongoDB connection URI")
    max_pool_size: int = Field(default=0, ge=0, description="Maximum pooled connections per server")
    min_pool_size: int = Field(default=0, ge=0, description="Minimum pooled connections per server")
    ca_cert_file: Optional[str] = Field(default=None, description="PEM CA file enabling TLS")
    username: Optional[str] = Field(default=None, description="Username when not given in the URI")
    password: Optional[str] = Field(default=None, repr=False, description="Password paired with username")
    database: Optional[str] = Field(default=None, description="Default database name")
    auth_source: Optional[str] = Field(default=None, description="Database holding the user credentials")

    @model_validator(mode="after")
    def validate_pool_bounds(self) -> "MongoConfig":
        """Ensure the minimum pool size does not exceed the maximum."""
        if self.max_pool_size and self.min_pool_size > self.max_pool_size:
            raise ValueError("min_pool_size must not exceed max_pool_size")
        return self

    @classmethod
    def from_env(cls, prefix: str = "MONGO") -> "MongoConfig":
        """
        Create MongoConfig from environment variables.

        Args:
            prefix: Variable prefix, e.g. ``MONGO`` reads ``MONGO_URI``

        Returns:
            MongoConfig: Configuration instance with values from environment
        """
        load_dotenv()
        return cls(
            uri=os.getenv(f"{prefix}_URI", "mongodb://127.0.0.1:27017"),
            max_pool_size=int(os.getenv(f"{prefix}_MAX_POOL_SIZE", "0")),
            min_pool_size=int(os.getenv(f"{prefix}_MIN_POOL_SIZE", "0")),
            ca_cert_file=os.getenv(f"{prefix}_CA_CERT_FILE") or None,
            username=os.getenv(f"{prefix}_USERNAME") or None,
            password=os.getenv(f"{prefix}_PASSWORD") or None,
            database=os.getenv(f"{prefix}_DATABASE") or None,
            auth_source=os.getenv(f"{prefix}_AUTH_SOURCE") or None,
        )

    @property
    def has_credentials(self) -> bool:
        return bool(self.username and self.password)

    def to_client_kwargs(self) -> Dict[str, Any]:
        """
        Convert configuration to MongoClient keyword arguments.

        The URI itself and TLS settings are handled by the caller.

        Returns:
            Dict[str, Any]: Keyword arguments for pymongo.MongoClient
        """
        kwargs: Dict[str, Any] = {}

        if self.has_credentials:
            kwargs["username"] = self.username
            kwargs["password"] = self.password
            if self.auth_source:
                kwargs["authSource"] = self.auth_source
        if self.max_pool_size > 0:
            kwargs["maxPoolSize"] = self.max_pool_size
        if self.min_pool_size > 0:
            kwargs["minPoolSize"] = self.min_pool_size

        return kwargs

    def __str__(self) -> str:
        """String representation hiding sensitive information."""
        return (
            f"MongoConfig(uri={mask_uri(self.uri)}, database={self.database}, "
            f"max_pool_size={self.max_pool_size}, min_pool_size={self.min_pool_size})"
        )
