"""
Logging facade: leveled, fielded messages routed to file and console outputs.
"""

from .config import LogConfig, parse_level
from .factory import (
    build_file_formatter,
    new_logger,
    setup_logging,
    get_logger,
    get_all_loggers,
    sync_all,
)
from .sql import attach_sql_logger, SQL_PREFIX

__all__ = [
    # Configuration
    "LogConfig",
    "parse_level",

    # Loggers
    "build_file_formatter",
    "new_logger",
    "setup_logging",
    "get_logger",
    "get_all_loggers",
    "sync_all",

    # SQL
    "attach_sql_logger",
    "SQL_PREFIX",
]
