"""
Relational database configuration.

A ``DatabaseConfig`` names one primary SQLAlchemy URL plus optional replica
URLs used for read traffic. Pool bounds only override the SQLAlchemy
defaults when they are positive.
"""

import os
from typing import Optional, Dict, Any, Tuple

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, model_validator
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError

# QueuePool default pool_size, used to derive max_overflow from max_open alone
SQLALCHEMY_DEFAULT_POOL_SIZE = 5


def mask_url(url: str) -> str:
    """Render a database URL with its password hidden."""
    try:
        return make_url(url).render_as_string(hide_password=True)
    except ArgumentError:
        return url.split("@")[-1]


class DatabaseConfig(BaseModel):
    """
    Configuration for one named relational database.

    Attributes mirror connection pool terminology: ``max_idle`` connections
    are kept open, up to ``max_open`` in total, and each one is recycled
    after ``max_life`` seconds.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    url: str = Field(description="SQLAlchemy URL of the primary, e.g. mysql+pymysql://u:p@host/db")
    replicas: Tuple[str, ...] = Field(default=(), description="SQLAlchemy URLs of read replicas")
    max_idle: int = Field(default=0, ge=0, description="Connections kept open in the pool")
    max_open: int = Field(default=0, ge=0, description="Maximum open connections")
    max_life: int = Field(default=0, ge=0, description="Connection lifetime in seconds")
    show_sql: bool = Field(default=False, description="Log every executed statement")
    synchronization: bool = Field(default=False, description="Run the schema sync hook at boot")

    @model_validator(mode="after")
    def validate_pool_bounds(self) -> "DatabaseConfig":
        """Ensure the idle pool fits inside the open connection limit."""
        if self.max_idle and self.max_open and self.max_idle > self.max_open:
            raise ValueError("max_idle must not exceed max_open")
        return self

    @classmethod
    def from_env(cls, prefix: str = "DB") -> "DatabaseConfig":
        """
        Create DatabaseConfig from environment variables.

        Environment variables (with the default ``DB`` prefix):
        - DB_URL: Primary SQLAlchemy URL (required)
        - DB_REPLICAS: Comma separated replica URLs
        - DB_MAX_IDLE / DB_MAX_OPEN / DB_MAX_LIFE: Pool bounds
        - DB_SHOW_SQL / DB_SYNCHRONIZATION: Boolean flags

        Raises:
            ValueError: If the URL variable is missing
        """
        load_dotenv()
        url = os.getenv(f"{prefix}_URL")
        if not url:
            raise ValueError(f"{prefix}_URL is required")

        replicas = os.getenv(f"{prefix}_REPLICAS", "")
        return cls(
            url=url,
            replicas=tuple(r.strip() for r in replicas.split(",") if r.strip()),
            max_idle=int(os.getenv(f"{prefix}_MAX_IDLE", "0")),
            max_open=int(os.getenv(f"{prefix}_MAX_OPEN", "0")),
            max_life=int(os.getenv(f"{prefix}_MAX_LIFE", "0")),
            show_sql=os.getenv(f"{prefix}_SHOW_SQL", "false").lower() in ("true", "1", "yes", "on"),
            synchronization=os.getenv(f"{prefix}_SYNCHRONIZATION", "false").lower() in ("true", "1", "yes", "on"),
        )

    def engine_kwargs(self, url: Optional[str] = None) -> Dict[str, Any]:
        """
        Get create_engine() keyword arguments for ``url`` (defaults to the primary).

        Returns:
            Dictionary of engine configuration parameters
        """
        url = url or self.url
        kwargs: Dict[str, Any] = {
            'pool_pre_ping': True,  # Verify connections before use
        }

        if make_url(url).get_backend_name() == 'sqlite':
            # Connections are probed on a helper thread and reused elsewhere
            kwargs['connect_args'] = {'check_same_thread': False}

        pool_size = self.max_idle or None
        if pool_size:
            kwargs['pool_size'] = pool_size
        if self.max_open:
            if pool_size is None and self.max_open < SQLALCHEMY_DEFAULT_POOL_SIZE:
                kwargs['pool_size'] = self.max_open
                kwargs['max_overflow'] = 0
            else:
                kwargs['max_overflow'] = self.max_open - (pool_size or SQLALCHEMY_DEFAULT_POOL_SIZE)
        if self.max_life:
            kwargs['pool_recycle'] = self.max_life

        return kwargs

    def __str__(self) -> str:
        """String representation hiding sensitive information."""
        return (
            f"DatabaseConfig(url={mask_url(self.url)}, replicas={len(self.replicas)}, "
            f"max_idle={self.max_idle}, max_open={self.max_open}, max_life={self.max_life})"
        )
