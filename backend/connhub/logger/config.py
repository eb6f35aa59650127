"""
Logging configuration model.
"""

import logging
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# zap-style level names accepted next to the standard logging ones
LEVEL_ALIASES = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "dpanic": logging.CRITICAL,
    "panic": logging.CRITICAL,
    "fatal": logging.CRITICAL,
    "critical": logging.CRITICAL,
}


def parse_level(value: str) -> int:
    """Map a level name to its logging level number."""
    try:
        return LEVEL_ALIASES[value.strip().lower()]
    except KeyError:
        raise ValueError(f"Log level must be one of: {sorted(LEVEL_ALIASES)}") from None


class LogConfig(BaseModel):
    """Configuration for the file and console log outputs."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    level: str = Field(default="info", description="Level of the file output")
    filename: Optional[str] = Field(default=None, description="Log file path, no file output when unset")
    max_size: int = Field(default=100, ge=1, description="Maximum size of one log file in MB")
    max_backups: int = Field(default=7, ge=0, description="Rotated log files kept")
    console: str = Field(default="info", description="Level of the console output")
    format: str = Field(default="text", description="File output format: json or text")

    @field_validator("level", "console")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level is a known level name."""
        parse_level(v)
        return v.lower()

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        """Validate output format."""
        if v.lower() not in ("json", "text"):
            raise ValueError("Log format must be json or text")
        return v.lower()

    @property
    def file_level(self) -> int:
        return parse_level(self.level)

    @property
    def console_level(self) -> int:
        return parse_level(self.console)
