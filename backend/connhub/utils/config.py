"""
Settings loader with validation for the connection hub.

Settings come from a JSON or TOML file whose path is passed explicitly or
read from the ``CONNHUB_CONFIG`` environment variable (a ``.env`` file is
honoured). Each backend section maps instance names to their configuration.
"""

import json
import os
import tomllib
from pathlib import Path
from typing import Optional, Dict, Any, Union

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..cache.config import ValkeyConfig
from ..core.manager import BootOptions, DEFAULT_PING_TIMEOUT
from ..core.monitor import DEFAULT_HEALTH_CHECK_INTERVAL
from ..database.config import DatabaseConfig
from ..document.config import MongoConfig
from ..logger.config import LogConfig

CONFIG_PATH_ENV = "CONNHUB_CONFIG"


class BootSettings(BaseModel):
    """Startup and health check settings shared by every backend."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    ping_timeout: float = Field(
        default=DEFAULT_PING_TIMEOUT, gt=0, description="Liveness probe timeout in seconds"
    )
    health_check_interval: float = Field(
        default=DEFAULT_HEALTH_CHECK_INTERVAL, gt=0, description="Seconds between health check rounds"
    )
    rollback_on_failure: bool = Field(
        default=False, description="Close clients of a failed boot call"
    )

    def to_options(self) -> BootOptions:
        return BootOptions(
            ping_timeout=self.ping_timeout,
            health_check_interval=self.health_check_interval,
            rollback_on_failure=self.rollback_on_failure,
        )


class HubSettings(BaseModel):
    """Complete configuration of a connection hub."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    log: LogConfig = Field(default_factory=LogConfig)
    boot: BootSettings = Field(default_factory=BootSettings)
    mongo: Dict[str, MongoConfig] = Field(default_factory=dict)
    valkey: Dict[str, ValkeyConfig] = Field(default_factory=dict)
    database: Dict[str, DatabaseConfig] = Field(default_factory=dict)


def read_settings_file(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Read raw settings from a ``.json`` or ``.toml`` file.

    Raises:
        ValueError: If the extension is not supported or the content is malformed
        OSError: If the file cannot be read
    """
    path = Path(path)
    suffix = path.suffix.lower()

    if suffix == ".json":
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in {path}: {e}") from e

    if suffix == ".toml":
        try:
            with path.open("rb") as f:
                return tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ValueError(f"Invalid TOML in {path}: {e}") from e

    raise ValueError(f"Unsupported settings file type: {path.suffix}")


def load_settings(path: Optional[Union[str, Path]] = None, env_file: Optional[str] = None) -> HubSettings:
    """
    Load and validate hub settings.

    Args:
        path: Settings file; defaults to the ``CONNHUB_CONFIG`` environment variable
        env_file: Optional path to .env file. If None, looks for .env in current directory.

    Returns:
        HubSettings: Validated settings; empty defaults when no file is configured

    Raises:
        ValueError: If the settings file is malformed or fails validation
    """
    if env_file is None:
        env_file = ".env"

    if os.path.exists(env_file):
        load_dotenv(env_file)

    path = path or os.getenv(CONFIG_PATH_ENV)
    raw: Dict[str, Any] = read_settings_file(path) if path else {}

    try:
        return HubSettings.model_validate(raw)
    except ValidationError as e:
        raise ValueError(f"Configuration validation failed: {e}") from e
